"""Repository helpers for Books and their genre labels."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..dbmodels import Authors, BookGenres, Books


async def count_books(session: AsyncSession) -> int:
    res = await session.execute(select(func.count()).select_from(Books))
    return res.scalar_one()


async def find_books(
    session: AsyncSession,
    *,
    author_name: str | None = None,
    genre: str | None = None,
) -> list[Books]:
    """Books matching every given filter, with author and genres preloaded.

    ``genre`` matches when the label appears anywhere in the book's genre list.
    """
    stmt = select(Books).options(
        selectinload(Books.author),
        selectinload(Books.genre_entries),
    )

    if author_name is not None:
        stmt = stmt.join(Books.author).where(Authors.name == author_name)

    if genre is not None:
        tagged = select(BookGenres.book_id).where(BookGenres.genre == genre)
        stmt = stmt.where(Books.id.in_(tagged))

    stmt = stmt.order_by(Books.created_at, Books.title)
    res = await session.execute(stmt)
    return list(res.scalars().all())


async def get_book_by_title(session: AsyncSession, title: str) -> Books | None:
    res = await session.execute(select(Books).where(Books.title == title))
    return res.scalar_one_or_none()


async def create_book(
    session: AsyncSession,
    *,
    title: str,
    published: int,
    author: Authors,
    genres: list[str],
) -> Books:
    """Insert a book linked to ``author``. Raises IntegrityError on a duplicate title."""
    book = Books(title=title, published=published, author_id=author.id)
    book.genre_entries = [
        BookGenres(position=position, genre=genre) for position, genre in enumerate(genres)
    ]
    session.add(book)
    await session.flush()
    return book

