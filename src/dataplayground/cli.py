"""Command-line interface for Data Playground.

Commands:
    serve     Run the HTTP API with uvicorn.
    init-db   Create the database tables outside of migrations.
    version   Print the package version.
    info      Show the effective configuration.
"""

import asyncio
from typing import NoReturn

import click

from dataplayground import __version__
from dataplayground.core.config import Settings, get_settings
from dataplayground.core.logging import configure_logging, get_logger

APP_FACTORY = "dataplayground.infrastructure.api.app:create_app"


def _load_settings() -> Settings:
    settings = get_settings()
    configure_logging(settings)
    return settings


@click.group()
@click.version_option(version=__version__, prog_name="Data Playground")
def cli() -> None:
    """Data Playground: typed data collections you can share.

    Configuration comes from DATAPLAYGROUND_* environment variables or a
    .env file in the working directory.
    """


@cli.command()
@click.option("-h", "--host", default=None, help="Bind address. Defaults to the configured host.")
@click.option("-p", "--port", type=int, default=None, help="Bind port. Defaults to the configured port.")
@click.option("-w", "--workers", type=int, default=None, help="Worker process count.")
@click.option(
    "--reload/--no-reload",
    default=None,
    help="Restart on code changes. On by default in development.",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool | None) -> None:
    """Run the API server."""
    import uvicorn

    settings = _load_settings()
    options = {
        "host": host or settings.host,
        "port": port or settings.port,
        "reload": settings.is_development if reload is None else reload,
    }
    # uvicorn cannot combine reload with several workers
    options["workers"] = 1 if options["reload"] else (workers or settings.workers)

    get_logger(__name__).info("Starting API server", environment=settings.environment, **options)
    uvicorn.run(
        APP_FACTORY,
        factory=True,
        log_level=settings.log_level.lower(),
        **options,
    )


async def _create_schema(settings: Settings) -> None:
    from dataplayground.infrastructure.persistence.database import (
        DatabaseManager,
        ensure_sqlite_directory,
    )

    ensure_sqlite_directory(settings.database_url)
    db = DatabaseManager(settings)
    try:
        await db.create_tables()
    finally:
        await db.disconnect()


@cli.command("init-db")
@click.option("--force", is_flag=True, help="Do not prompt, and allow production databases.")
def init_db(force: bool) -> None:
    """Create all tables in the configured database.

    Production databases are managed with alembic migrations; this command
    refuses to touch them unless --force is given.
    """
    settings = _load_settings()

    if settings.is_production and not force:
        raise click.ClickException(
            "Refusing to initialize a production database. Run alembic migrations instead."
        )
    if not force:
        click.confirm(f"Create tables in {settings.database_url}?", abort=True)

    asyncio.run(_create_schema(settings))
    click.echo("Database initialized successfully.")


@cli.command()
def version() -> None:
    """Print the Data Playground version."""
    click.echo(f"Data Playground v{__version__}")


@cli.command()
def info() -> None:
    """Show the effective configuration."""
    settings = get_settings()
    sections = {
        "Application": [
            ("environment", settings.environment),
            ("debug", settings.debug),
            ("api prefix", settings.api_prefix),
        ],
        "Server": [
            ("bind", f"{settings.host}:{settings.port}"),
            ("workers", settings.workers),
        ],
        "Database": [
            ("url", settings.database_url),
            ("echo", settings.db_echo),
        ],
        "Auth": [
            ("token lifetime", f"{settings.access_token_expire_minutes} min"),
            ("registration", "code required" if settings.registration_code else "open"),
        ],
        "Listing": [
            ("default page size", settings.default_page_size),
            ("max page size", settings.max_page_size),
        ],
    }

    click.secho(f"{settings.app_name} v{settings.app_version}", bold=True)
    for title, rows in sections.items():
        click.echo(f"\n{title}")
        for label, value in rows:
            click.echo(f"  {label:<18} {value}")


def main() -> NoReturn:
    """Entry point for the `dataplayground` script and `python -m dataplayground`."""
    cli()


if __name__ == "__main__":
    main()
