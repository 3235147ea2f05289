"""
Main FastAPI application for the Library backend
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..auth.tokens import TokenService, get_token_service
from ..config import settings
from ..database import init_database
from ..database.connection import check_database_connection
from ..events import EventBus
from ..logging import configure_logging, get_logger
from ..middleware import LoggingContextMiddleware

# Configure logging before creating logger
configure_logging(debug=settings.debug, log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Library API...")
    init_database()

    ok, error = await check_database_connection()
    if ok:
        logger.info("Database connection verified")
    else:
        # Requests touching the store will fail until the database is reachable
        logger.error("Database connection check failed", error=error)

    yield

    logger.info("Shutting down Library API...")


def create_app(
    event_bus: EventBus | None = None,
    token_service: TokenService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        event_bus: Bus shared by every request of this app; a fresh one by default.
        token_service: Token signer/verifier; built from settings by default.
    """
    event_bus = event_bus or EventBus()
    token_service = token_service or get_token_service()

    app = FastAPI(
        title="Library API",
        description="GraphQL catalog of books and authors",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(LoggingContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():  # pyright: ignore [reportUnusedFunction]
        """Health check endpoint."""
        db_ok, _ = await check_database_connection()
        return {
            "status": "healthy" if db_ok else "degraded",
            "database": "ok" if db_ok else "unavailable",
            "version": __version__,
        }

    try:
        from ..graphql.schema import create_graphql_router, validate_schema

        logger.info("Validating GraphQL schema...")
        validate_schema()

        app.include_router(create_graphql_router(event_bus, token_service), prefix="")
        logger.info("GraphQL endpoint initialized successfully", endpoint="/graphql")
    except Exception as e:  # pragma: no cover
        logger.error("Failed to initialize GraphQL endpoint", error=str(e))
        # Server should not start with a broken schema
        raise

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
