#!/usr/bin/env python3
"""
Main CLI entry point for the Library backend server.
"""

import os
import sys
from pathlib import Path

import click
import uvicorn
from alembic import command
from alembic.config import Config

from library import __version__
from library.config import Settings, settings
from library.logging import configure_logging, get_logger

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="library")
def cli() -> None:
    """Library CLI - run the API server and prepare the database."""
    pass


@cli.command()
@click.option("--host", default=settings.api_host, show_default=True, help="Host to bind to")
@click.option("--port", default=settings.api_port, type=int, show_default=True, help="Port to bind to")
@click.option(
    "--reload/--no-reload",
    default=settings.api_reload,
    show_default=True,
    help="Enable auto-reload for development",
)
@click.option(
    "--log-level",
    default=settings.log_level.lower(),
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    show_default=True,
    help="Log level",
)
def serve(host: str, port: int, reload: bool, log_level: str) -> None:
    """Start the Library API server.

    Runs a single process: the bookAdded event bus lives in memory and is
    not shared across workers.
    """
    log_level = log_level.lower()
    configure_logging(debug=(log_level == "debug"), log_level=log_level)

    logger.info("Starting Library API server", host=host, port=port, reload=reload)

    # The --reload worker reads these from its environment
    if log_level == "debug":
        os.environ["LIBRARY_DEBUG"] = "true"
    else:
        os.environ.setdefault("LIBRARY_DEBUG", "false")
    os.environ["LIBRARY_LOG_LEVEL"] = log_level

    # This process loaded settings at import, before the options were known
    reloaded = Settings()
    settings.debug = reloaded.debug
    settings.log_level = reloaded.log_level

    try:
        uvicorn.run(
            "library.api.app:create_app",
            factory=True,
            host=host,
            port=port,
            reload=reload,
            log_level=log_level,
            access_log=True,
        )
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


@cli.group()
def db() -> None:
    """Manage the database schema."""
    pass


def get_alembic_config() -> Config:
    """Load alembic.ini from the project root (next to src/)."""
    alembic_ini = Path(__file__).resolve().parents[2] / "alembic.ini"
    if not alembic_ini.exists():
        raise click.ClickException(f"alembic.ini not found at {alembic_ini}")
    return Config(str(alembic_ini))


@db.command()
@click.argument("revision", default="head")
def upgrade(revision: str) -> None:
    """Apply migrations up to REVISION (default: head)."""
    configure_logging()
    logger.info("Upgrading database", revision=revision)
    try:
        command.upgrade(get_alembic_config(), revision)
    except Exception as e:
        logger.error("Database upgrade failed", error=str(e))
        sys.exit(1)
    logger.info("Database upgrade completed successfully")


@db.command()
@click.argument("revision", default="-1")
def downgrade(revision: str) -> None:
    """Revert migrations down to REVISION (default: one step)."""
    configure_logging()
    logger.info("Downgrading database", revision=revision)
    try:
        command.downgrade(get_alembic_config(), revision)
    except Exception as e:
        logger.error("Database downgrade failed", error=str(e))
        sys.exit(1)
    logger.info("Database downgrade completed successfully")


@db.command()
def current() -> None:
    """Show the current database revision."""
    command.current(get_alembic_config())


@db.command("create-all")
def create_all() -> None:
    """Create missing tables directly from the ORM models (development only)."""
    from library.database import create_schema

    configure_logging()
    try:
        create_schema()
    except Exception as e:
        logger.error("Failed to create database schema", error=str(e))
        click.echo(f"✗ Error creating schema: {e}", err=True)
        sys.exit(1)
    click.echo("✓ Database schema ready")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
