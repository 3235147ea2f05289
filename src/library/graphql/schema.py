"""
Main GraphQL schema definition using Strawberry
"""

from typing import Any

import strawberry
from fastapi import HTTPException, WebSocketException, status
from fastapi.requests import HTTPConnection
from graphql import validate_schema as gql_validate_schema
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL

from ..auth.authenticator import Authenticator
from ..auth.tokens import TokenService
from ..config import settings
from ..errors import InvalidCredentialError
from ..events import EventBus
from ..logging import get_logger
from .access_control import build_context
from .mutations.root import Mutation
from .queries.root import Query
from .subscriptions.root import Subscription

logger = get_logger(__name__)

schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    subscription=Subscription,
)


def validate_schema() -> None:
    """Validate the GraphQL schema at startup.

    Fails fast on unresolved type references instead of erroring on the
    first request.

    Raises:
        Exception: If the schema is invalid or introspection fails
    """
    try:
        graphql_schema = schema._schema

        errors = gql_validate_schema(graphql_schema)
        if errors:
            error_messages = [str(e) for e in errors]
            raise Exception(f"GraphQL schema validation failed: {'; '.join(error_messages)}")

        from graphql import get_introspection_query, graphql_sync

        result = graphql_sync(graphql_schema, get_introspection_query())
        if result.errors:
            error_messages = [str(e) for e in result.errors]
            raise Exception(f"GraphQL introspection failed: {'; '.join(error_messages)}")

        logger.info("GraphQL schema validation successful")

    except Exception as e:
        logger.error("GraphQL schema validation failed", error=str(e))
        raise


def create_graphql_router(
    event_bus: EventBus, token_service: TokenService
) -> GraphQLRouter[dict[str, Any], None]:
    """Create the GraphQL router (HTTP and websocket subscriptions) for FastAPI."""
    authenticator = Authenticator(token_service)

    async def get_context(connection: HTTPConnection) -> dict[str, Any]:
        """Authenticate the caller, then build the resolver context.

        A credential that fails verification rejects the whole request
        before any resolver runs.
        """
        try:
            auth = await authenticator.authenticate(connection.headers.get("authorization"))
        except InvalidCredentialError as e:
            logger.warning("Rejected request with invalid credential", error=str(e))
            if connection.scope["type"] == "websocket":
                raise WebSocketException(
                    code=status.WS_1008_POLICY_VIOLATION, reason=str(e)
                ) from e
            raise HTTPException(
                status_code=401,
                detail=str(e),
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        return build_context(
            request=connection,
            auth=auth,
            event_bus=event_bus,
            token_service=token_service,
        )

    return GraphQLRouter(
        schema,
        path="/graphql",
        graphql_ide="graphiql" if settings.debug else None,
        context_getter=get_context,
        subscription_protocols=[GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL],
    )
