"""
Shared pytest fixtures and configuration for all tests.
"""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
import strawberry

from library.auth.context import AuthContext
from library.auth.tokens import TokenService
from library.events import EventBus

TEST_SECRET = "test-secret-key-for-testing-only"


@pytest.fixture(scope="function")
def database(tmp_path: Path) -> Generator[str, None, None]:
    """Point the shared connection pools at a fresh SQLite file with all tables created."""
    from library.database.connection import create_schema, init_database, reset_database

    dsn = f"sqlite:///{tmp_path / 'library.db'}"

    reset_database()
    init_database(dsn, force_reinit=True)
    create_schema()

    yield dsn

    reset_database()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret_key=TEST_SECRET, issuer="test-library", audience="test-api")


@pytest_asyncio.fixture
async def user(database: str) -> Any:
    """A persisted user to act as the authenticated caller."""
    from library.database.connection import get_async_session
    from library.store import users as users_repo

    async with get_async_session() as session:
        return await users_repo.create_user(session, username="mluukkai", favorite_genre="refactoring")


@pytest.fixture
def make_context(event_bus: EventBus, token_service: TokenService):
    """Build a resolver context the way the GraphQL router does."""
    from library.graphql.access_control import build_context

    def _make(user: Any = None) -> dict[str, Any]:
        return build_context(
            auth=AuthContext(user=user, token="test-token" if user else None),
            event_bus=event_bus,
            token_service=token_service,
        )

    return _make


@pytest.fixture
def make_info(make_context):
    """Create a mock GraphQL info object carrying a real resolver context."""

    def _make(user: Any = None) -> MagicMock:
        info = MagicMock(spec=strawberry.Info)
        info.context = make_context(user)
        return info

    return _make


@pytest.fixture
def execute(make_context):
    """Run a GraphQL document against the schema."""
    from library.graphql.schema import schema

    async def _execute(
        query: str,
        variables: dict[str, Any] | None = None,
        user: Any = None,
        context: dict[str, Any] | None = None,
    ):
        return await schema.execute(
            query,
            variable_values=variables,
            context_value=context if context is not None else make_context(user),
        )

    return _execute


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
