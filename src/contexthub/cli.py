"""Command-line interface for ContextHub Collections.

Operator commands for initializing the store and inspecting collections
without going through the HTTP layer.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, NoReturn

import click
from sqlalchemy.ext.asyncio import AsyncSession

from contexthub import __version__
from contexthub.core.config import get_settings
from contexthub.core.logging import LoggingContext, configure_logging
from contexthub.domain.exceptions import DomainError


def _run_with_session(operation: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
    """Run an operation in a database session and dispose the engine afterwards."""
    from contexthub.infrastructure.persistence.database import close_database, get_db_manager

    async def runner() -> Any:
        try:
            async with get_db_manager().session() as session:
                return await operation(session)
        finally:
            await close_database()

    return asyncio.run(runner())


def _echo_json(value: Any) -> None:
    click.echo(json.dumps(value, indent=2, ensure_ascii=False))


@click.group()
@click.version_option(version=__version__, prog_name="ContextHub Collections")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides environment)",
)
def cli(log_level: str | None) -> None:
    """ContextHub Collections - tenant-defined schemas and a query DSL."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)


@cli.command("init-db")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def init_db(force: bool) -> None:
    """Create all database tables.

    Use this only in development. In production, run the Alembic
    migrations instead.
    """
    from contexthub.infrastructure.persistence.database import close_database, init_database

    settings = get_settings()
    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize() -> None:
        try:
            await init_database()
            click.echo("Database initialized successfully.")
        finally:
            await close_database()

    asyncio.run(initialize())


@cli.command()
@click.option("--tenant", "tenant_id", required=True, help="Tenant ID")
@click.option(
    "--status",
    type=click.Choice(["active", "archived"]),
    default=None,
    help="Only list collections with this status",
)
def collections(tenant_id: str, status: str | None) -> None:
    """List a tenant's collection types as JSON."""
    from contexthub.domain.services import CollectionTypeService

    async def list_types(session: AsyncSession) -> list[dict[str, Any]]:
        return await CollectionTypeService(session).list_collection_types(tenant_id, status=status)

    with LoggingContext(tenant_id=tenant_id):
        _echo_json(_run_with_session(list_types))


@cli.command()
@click.option("--tenant", "tenant_id", required=True, help="Tenant ID")
@click.option(
    "--file",
    "query_file",
    type=click.File("r"),
    required=True,
    help="JSON file holding the query request ('-' reads stdin)",
)
def query(tenant_id: str, query_file: Any) -> None:
    """Run a collection query and print the result as JSON."""
    from contexthub.domain.services import CollectionQueryService

    try:
        payload = json.load(query_file)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON in query file: {e}", err=True)
        raise SystemExit(1)
    if not isinstance(payload, dict):
        click.echo("Error: The query file must hold a JSON object", err=True)
        raise SystemExit(1)

    async def run(session: AsyncSession) -> dict[str, Any]:
        return await CollectionQueryService(session).run_collection_query(tenant_id, payload)

    with LoggingContext(tenant_id=tenant_id, collection_key=str(payload.get("collection", ""))):
        try:
            result = _run_with_session(run)
        except DomainError as e:
            _echo_json(e.to_dict())
            raise SystemExit(1)
    _echo_json(result)


@cli.command()
def info() -> None:
    """Display configuration summary."""
    settings = get_settings()

    click.echo(f"""
ContextHub Collections v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}

Database:
  URL:          {settings.database_url}
  Echo:         {settings.db_echo}

Limits:
  Fields/type:  {settings.max_collection_fields}
  List limit:   {settings.list_default_limit} (max {settings.list_max_limit})
  Query limit:  {settings.query_default_limit} (max {settings.query_max_limit})

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `contexthub` command is run
    or when using `python -m contexthub`.
    """
    cli()


if __name__ == "__main__":
    main()
