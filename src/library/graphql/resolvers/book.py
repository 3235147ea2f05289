from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING

import strawberry
from sqlalchemy.exc import IntegrityError

from ...database.connection import get_async_session
from ...errors import InvalidInputError
from ...events import BOOK_ADDED
from ...logging import get_logger
from ...store import authors as authors_repo
from ...store import books as books_repo
from ...validation import validate_new_book
from ..access_control import get_event_bus_from_info, require_authenticated
from .author import author_from_model

if TYPE_CHECKING:
    from ...dbmodels import Authors, Books
    from ..types.book import Book

logger = get_logger(__name__)


def book_from_model(book: Books, author: Authors | None = None) -> Book:
    """Convert a book row; pass ``author`` when the relationship is not loaded."""
    from ..types.book import Book as BookType

    return BookType(
        id=strawberry.ID(str(book.id)),
        title=book.title,
        published=book.published,
        genres=list(book.genres),
        author=author_from_model(author if author is not None else book.author),
    )


# Query resolvers
async def resolve_book_count(info: strawberry.Info) -> int:
    logger.debug("Resolving bookCount")
    async with get_async_session() as session:
        return await books_repo.count_books(session)


async def resolve_all_books(
    info: strawberry.Info, author: str | None, genre: str | None
) -> list[Book]:
    """Books filtered by exact author name and/or genre membership."""
    logger.debug("Resolving allBooks", author=author, genre=genre)
    async with get_async_session() as session:
        books = await books_repo.find_books(session, author_name=author, genre=genre)
    return [book_from_model(book) for book in books]


async def find_or_create_author(name: str) -> Authors:
    """
    Phase one of addBook: look the author up by name, inserting it if absent.

    Runs in its own transaction, so an author created here stays even if the
    book insert that follows fails. Two concurrent calls for the same new name
    race on the ``authors_name_key`` constraint; the loser re-reads the
    winner's row instead of failing.
    """
    async with get_async_session() as session:
        author = await authors_repo.get_author_by_name(session, name)
    if author is not None:
        return author

    try:
        async with get_async_session() as session:
            author = await authors_repo.create_author(session, name=name)
        logger.info("Author created", author_id=str(author.id), name=name)
        return author
    except IntegrityError:
        async with get_async_session() as session:
            author = await authors_repo.get_author_by_name(session, name)
        if author is None:
            raise
        logger.info("Author created concurrently, reusing it", author_id=str(author.id))
        return author


# Mutation resolvers
async def add_book(
    info: strawberry.Info,
    title: str,
    published: int,
    author: str,
    genres: list[str],
) -> Book:
    """
    Add a book, creating its author on first use, and announce it to subscribers.

    Steps: authenticate, validate (no writes before this passes), find or
    create the author, insert the book, publish BOOK_ADDED.
    """
    auth = require_authenticated(info)

    async with get_async_session() as session:
        await validate_new_book(session, title=title, author=author)

    author_row = await find_or_create_author(author)

    try:
        async with get_async_session() as session:
            book_row = await books_repo.create_book(
                session,
                title=title,
                published=published,
                author=author_row,
                genres=genres,
            )
    except IntegrityError as e:
        # A concurrent addBook won the title after our pre-check
        logger.info("Book insert rejected by store", title=title, error=str(e.orig))
        raise InvalidInputError(str(e.orig), invalid_args={"title": title}) from e

    book = book_from_model(book_row, author=author_row)
    logger.info(
        "Book added",
        book_id=book.id,
        title=title,
        author=author,
        added_by=str(auth.user_id),
    )

    await get_event_bus_from_info(info).publish(BOOK_ADDED, book)
    return book


# Subscription resolvers
async def subscribe_book_added(info: strawberry.Info) -> AsyncGenerator[Book, None]:
    """
    Yield every book added after this subscription attached.

    The bus subscription attaches when iteration starts; closing the
    generator (client disconnect) detaches it.
    """
    subscription = get_event_bus_from_info(info).subscribe(BOOK_ADDED)
    logger.info("bookAdded subscriber connected")
    try:
        async for book in subscription:
            yield book
    finally:
        subscription.close()
        logger.info("bookAdded subscriber disconnected")
