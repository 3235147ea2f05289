"""Per-request identity resolution from the Authorization header."""

from __future__ import annotations

from ..database.connection import get_async_session
from ..errors import UnauthenticatedError
from ..logging import bind_user_id, get_logger
from ..store import users as users_repo
from .context import AuthContext
from .tokens import TokenService

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token part of an Authorization header, or None when absent.

    The ``bearer`` scheme prefix is matched case-insensitively; a header
    without it is taken to be the bare token.
    """
    if not authorization:
        return None
    if authorization.lower().startswith(BEARER_PREFIX):
        authorization = authorization[len(BEARER_PREFIX):]
    return authorization.strip() or None


class Authenticator:
    """Turns an optional bearer credential into an :class:`AuthContext`."""

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    async def authenticate(self, authorization: str | None) -> AuthContext:
        """
        Resolve the request identity.

        1. No credential: anonymous context.
        2. Signature check fails: InvalidCredentialError propagates, the
           request must not continue as anonymous.
        3. Valid token whose user no longer exists: anonymous context.

        Raises:
            InvalidCredentialError: If the token cannot be verified.
        """
        token = extract_bearer_token(authorization)
        if token is None:
            return AuthContext()

        claims = self.token_service.verify_token(token)

        async with get_async_session() as session:
            user = await users_repo.get_user_by_id(session, claims["id"])

        if user is None:
            logger.info("Token refers to unknown user", token_user_id=claims["id"])
            return AuthContext()

        bind_user_id(str(user.id))
        logger.debug("Request authenticated", username=user.username)
        return AuthContext(user=user, token=token)


def require_user(auth: AuthContext | None) -> AuthContext:
    """Return ``auth`` if it carries a user, else raise UnauthenticatedError."""
    if auth is None or not auth.is_authenticated:
        raise UnauthenticatedError()
    return auth
