from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

import strawberry
from sqlalchemy.exc import IntegrityError

from ...config import settings
from ...database.connection import get_async_session
from ...errors import InvalidInputError
from ...logging import get_logger
from ...store import users as users_repo
from ..access_control import get_auth_context_from_info, get_token_service_from_info

if TYPE_CHECKING:
    from ...dbmodels import Users
    from ..types.user import Token, User

logger = get_logger(__name__)


def user_from_model(user: Users) -> User:
    from ..types.user import User as UserType

    return UserType(
        id=strawberry.ID(str(user.id)),
        username=user.username,
        favorite_genre=user.favorite_genre,
    )


async def resolve_current_user(info: strawberry.Info) -> User | None:
    auth = get_auth_context_from_info(info)
    if auth.user is None:
        logger.debug("Resolving me for anonymous caller")
        return None
    logger.debug("Resolving me", user_id=str(auth.user_id))
    return user_from_model(auth.user)


async def create_user(info: strawberry.Info, username: str, favorite_genre: str | None) -> User:
    """Create a user; uniqueness is left to the store's constraint."""
    try:
        async with get_async_session() as session:
            user = await users_repo.create_user(
                session, username=username, favorite_genre=favorite_genre
            )
    except IntegrityError as e:
        logger.info("User creation rejected by store", username=username, error=str(e.orig))
        raise InvalidInputError(str(e.orig), invalid_args={"username": username}) from e

    logger.info("User created", user_id=str(user.id), username=username)
    return user_from_model(user)


async def login(info: strawberry.Info, username: str, password: str) -> Token:
    """
    Exchange a username and the shared login password for a signed token.

    Passwords are not stored per user: every account accepts the single
    configured ``login_password``. This is a placeholder, not a credential
    scheme.
    """
    from ..types.user import Token as TokenType

    async with get_async_session() as session:
        user = await users_repo.get_user_by_username(session, username)

    if user is None or not secrets.compare_digest(
        password.encode(), settings.login_password.encode()
    ):
        logger.info("Login failed", username=username, user_exists=user is not None)
        raise InvalidInputError("Wrong credentials", invalid_args={"username": username})

    token = get_token_service_from_info(info).issue_token(user)
    logger.info("User logged in", user_id=str(user.id))
    return TokenType(value=token)
