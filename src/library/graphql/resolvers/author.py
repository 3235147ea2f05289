from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import strawberry

from ...database.connection import get_async_session
from ...errors import NotFoundError
from ...logging import get_logger
from ...store import authors as authors_repo
from ..access_control import get_loaders_from_info, require_authenticated

if TYPE_CHECKING:
    from ...dbmodels import Authors
    from ..types.author import Author

logger = get_logger(__name__)


def author_from_model(author: Authors) -> Author:
    from ..types.author import Author as AuthorType

    return AuthorType(id=strawberry.ID(str(author.id)), name=author.name, born=author.born)


# Query resolvers
async def resolve_author_count(info: strawberry.Info) -> int:
    logger.debug("Resolving authorCount")
    async with get_async_session() as session:
        return await authors_repo.count_authors(session)


async def resolve_all_authors(info: strawberry.Info) -> list[Author]:
    logger.debug("Resolving allAuthors")
    async with get_async_session() as session:
        authors = await authors_repo.list_authors(session)
    return [author_from_model(author) for author in authors]


# Field resolvers
async def resolve_author_book_count(author: Author, info: strawberry.Info) -> int:
    """Count books for the author at resolution time (batched per event-loop tick)."""
    loaders = get_loaders_from_info(info)
    return await loaders.book_count_loader.load(UUID(str(author.id)))


# Mutation resolvers
async def edit_author(info: strawberry.Info, name: str, set_born_to: int | None) -> Author:
    """
    Set an author's birth year.

    Requires authentication. Unknown names raise NotFoundError rather than
    silently returning null.
    """
    auth = require_authenticated(info)

    async with get_async_session() as session:
        author = await authors_repo.get_author_by_name(session, name)
        if author is None:
            logger.info("editAuthor on unknown author", name=name)
            raise NotFoundError(f"Author '{name}' not found", invalid_args={"name": name})

        await authors_repo.set_born(session, author, set_born_to)

    logger.info(
        "Author birth year updated",
        author_id=str(author.id),
        born=set_born_to,
        edited_by=str(auth.user_id),
    )
    return author_from_model(author)
