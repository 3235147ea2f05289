"""Signed bearer tokens for logged-in users (PyJWT, HS256 by default)."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypedDict

import jwt
from jwt.exceptions import InvalidTokenError

from ..config import settings
from ..errors import InvalidCredentialError
from ..logging import get_logger

if TYPE_CHECKING:
    from ..dbmodels import Users

logger = get_logger(__name__)


class TokenClaims(TypedDict):
    """Identity embedded in a login token."""

    username: str
    id: str


class TokenService:
    """Issues and verifies self-signed JWTs.

    Tokens carry no expiry: a token stays valid until the signing secret
    changes or its user disappears.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        issuer: str = "library",
        audience: str = "library-api",
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience

    def issue_token(self, user: Users) -> str:
        payload = {
            "iss": self.issuer,
            "aud": self.audience,
            "iat": datetime.now(UTC),
            "username": user.username,
            "id": str(user.id),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenClaims:
        """Check the signature and required claims.

        Raises:
            InvalidCredentialError: If the token is malformed, tampered with or
                signed with another secret.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["id", "username"]},
            )
        except InvalidTokenError as e:
            logger.warning("JWT token validation failed", error=str(e))
            raise InvalidCredentialError("Invalid token") from e

        return TokenClaims(username=payload["username"], id=payload["id"])


def get_token_service() -> TokenService:
    """Build the token service from settings."""
    if not settings.jwt_secret:
        raise ValueError("JWT secret key is required. Set LIBRARY_JWT_SECRET.")

    return TokenService(
        secret_key=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )
