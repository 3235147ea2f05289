"""Repository helpers for Authors."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..dbmodels import Authors, Books


async def count_authors(session: AsyncSession) -> int:
    res = await session.execute(select(func.count()).select_from(Authors))
    return res.scalar_one()


async def list_authors(session: AsyncSession) -> list[Authors]:
    stmt = select(Authors).order_by(Authors.created_at, Authors.name)
    res = await session.execute(stmt)
    return list(res.scalars().all())


async def get_author_by_name(session: AsyncSession, name: str) -> Authors | None:
    res = await session.execute(select(Authors).where(Authors.name == name))
    return res.scalar_one_or_none()


async def count_books_by_authors(
    session: AsyncSession, author_ids: list[UUID]
) -> dict[UUID, int]:
    """Live book counts keyed by author id; authors without books are omitted."""
    stmt = (
        select(Books.author_id, func.count())
        .where(Books.author_id.in_(author_ids))
        .group_by(Books.author_id)
    )
    res = await session.execute(stmt)
    return {author_id: count for author_id, count in res.all()}


async def create_author(session: AsyncSession, *, name: str, born: int | None = None) -> Authors:
    """Insert an author. Raises IntegrityError on a duplicate name."""
    author = Authors(name=name, born=born)
    session.add(author)
    await session.flush()
    return author


async def set_born(session: AsyncSession, author: Authors, born: int | None) -> Authors:
    author.born = born
    await session.flush()
    return author
