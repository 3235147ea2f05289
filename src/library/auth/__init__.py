"""Authentication for the Library API."""

from .authenticator import Authenticator, extract_bearer_token, require_user
from .context import AuthContext
from .tokens import TokenClaims, TokenService, get_token_service

__all__ = [
    "AuthContext",
    "Authenticator",
    "TokenClaims",
    "TokenService",
    "extract_bearer_token",
    "get_token_service",
    "require_user",
]
