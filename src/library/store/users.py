"""Repository helpers for Users."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..dbmodels import Users


async def get_user_by_id(session: AsyncSession, user_id: str | UUID) -> Users | None:
    try:
        key = UUID(str(user_id))
    except ValueError:
        return None
    return await session.get(Users, key)


async def get_user_by_username(session: AsyncSession, username: str) -> Users | None:
    res = await session.execute(select(Users).where(Users.username == username))
    return res.scalar_one_or_none()


async def create_user(
    session: AsyncSession, *, username: str, favorite_genre: str | None = None
) -> Users:
    """Insert a user. Raises IntegrityError on a duplicate username."""
    user = Users(username=username, favorite_genre=favorite_genre)
    session.add(user)
    await session.flush()
    return user
