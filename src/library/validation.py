"""
Input validation for catalog mutations.

All checks run before any write. Length rules are pure; the title
uniqueness check reads the store and is advisory only, the
``books_title_key`` constraint is what actually enforces it.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from .errors import InvalidInputError
from .store import books as books_repo

MIN_TITLE_LENGTH = 4
MIN_AUTHOR_NAME_LENGTH = 5


def validate_title(title: str) -> None:
    if len(title) < MIN_TITLE_LENGTH:
        raise InvalidInputError(
            f"Book title must be at least {MIN_TITLE_LENGTH} characters long",
            invalid_args={"title": title},
        )


def validate_author_name(name: str) -> None:
    if len(name) < MIN_AUTHOR_NAME_LENGTH:
        raise InvalidInputError(
            f"Author name must be at least {MIN_AUTHOR_NAME_LENGTH} characters long",
            invalid_args={"author": name},
        )


async def ensure_title_available(session: AsyncSession, title: str) -> None:
    if await books_repo.get_book_by_title(session, title) is not None:
        raise InvalidInputError(
            f"A book titled '{title}' already exists",
            invalid_args={"title": title},
        )


async def validate_new_book(session: AsyncSession, *, title: str, author: str) -> None:
    """Run every addBook check in order, raising on the first failure."""
    validate_title(title)
    validate_author_name(author)
    await ensure_title_available(session, title)
