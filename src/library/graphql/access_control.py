"""
Request-context accessors shared by GraphQL resolvers
"""

from typing import TYPE_CHECKING, Any

import strawberry

from ..auth.authenticator import require_user
from ..auth.context import AuthContext
from ..logging import get_logger

if TYPE_CHECKING:
    from ..auth.tokens import TokenService
    from ..events import EventBus
    from .loaders import Loaders

logger = get_logger(__name__)


def build_context(
    *,
    auth: AuthContext,
    event_bus: "EventBus",
    token_service: "TokenService",
    request: Any = None,
) -> dict[str, Any]:
    """Assemble the resolver context for one request or subscription connection."""
    from .loaders import Loaders

    return {
        "request": request,
        "auth": auth,
        "event_bus": event_bus,
        "token_service": token_service,
        "loaders": Loaders(),
    }


def get_auth_context_from_info(info: strawberry.Info) -> AuthContext:
    """
    Return the identity resolved for this request.

    The context getter authenticates before any resolver runs, so a missing
    entry only happens when the schema is executed without it; that is
    treated as anonymous.
    """
    auth = info.context.get("auth")
    if auth is None:
        logger.warning("Auth context missing from GraphQL context, treating as anonymous")
        return AuthContext()
    return auth


def require_authenticated(info: strawberry.Info) -> AuthContext:
    """Raise UnauthenticatedError unless the request carries a known user."""
    return require_user(get_auth_context_from_info(info))


def get_event_bus_from_info(info: strawberry.Info) -> "EventBus":
    return info.context["event_bus"]


def get_token_service_from_info(info: strawberry.Info) -> "TokenService":
    return info.context["token_service"]


def get_loaders_from_info(info: strawberry.Info) -> "Loaders":
    return info.context["loaders"]
