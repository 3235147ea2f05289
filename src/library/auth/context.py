"""Authentication context for request handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from ..dbmodels import Users


@dataclass
class AuthContext:
    """Identity resolved for a single request; ``user`` is None for anonymous calls."""

    user: Users | None = None
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> UUID | None:
        return self.user.id if self.user is not None else None

