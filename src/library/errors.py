"""
Error taxonomy for the Library API.

Resolver exceptions are wrapped by graphql-core, which copies the
``extensions`` attribute of the original exception into the GraphQL error
returned to the client. Each class therefore carries a stable ``code``.
"""

from __future__ import annotations

from typing import Any


class LibraryError(Exception):
    """Base class for errors reported to API clients."""

    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, **extensions: Any) -> None:
        super().__init__(message)
        self.message = message
        self._extensions = extensions

    @property
    def extensions(self) -> dict[str, Any]:
        return {"code": self.code, **self._extensions}


class InvalidInputError(LibraryError):
    """Argument failed validation or violated a store constraint."""

    code = "BAD_USER_INPUT"

    def __init__(self, message: str, invalid_args: dict[str, Any] | None = None) -> None:
        super().__init__(message, invalidArgs=invalid_args or {})
        self.invalid_args = invalid_args or {}


class UnauthenticatedError(LibraryError):
    """A write operation was attempted without an authenticated user."""

    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "not authenticated") -> None:
        super().__init__(message)


class NotFoundError(LibraryError):
    """A record referenced by name or id does not exist."""

    code = "NOT_FOUND"

    def __init__(self, message: str, invalid_args: dict[str, Any] | None = None) -> None:
        super().__init__(message, invalidArgs=invalid_args or {})
        self.invalid_args = invalid_args or {}


class InvalidCredentialError(Exception):
    """Bearer token could not be verified. Aborts the whole request."""

    pass
