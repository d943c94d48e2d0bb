"""Database management commands for the judging CLI."""
import asyncio
from pathlib import Path

import click
from alembic import command
from alembic.config import Config

from judging.core.config import settings
from judging.core.database import Base, engine, mask_url
from judging.db import models  # noqa: F401  (registers tables on Base.metadata)


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


def get_alembic_config() -> Config:
    """Alembic configuration pointing at the project's migration scripts."""
    config = Config(str(get_project_root() / "alembic.ini"))
    config.set_main_option("script_location", str(get_project_root() / "alembic"))
    return config


async def create_tables() -> None:
    """Create every table on the configured database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


async def drop_tables() -> None:
    """Drop every table on the configured database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@click.group()
def db_group() -> None:
    """Database management commands."""
    pass


@db_group.command()
def init() -> None:
    """Create all tables directly from the models (local development)."""
    click.echo(click.style(f"Creating tables on {mask_url(settings.database_url)}...", fg="yellow"))
    asyncio.run(create_tables())
    click.echo(click.style("✓ Tables created", fg="green"))


@db_group.command()
@click.confirmation_option(prompt="This deletes every workflow table. Continue?")
def drop() -> None:
    """Drop all tables."""
    click.echo(click.style("Dropping tables...", fg="yellow"))
    asyncio.run(drop_tables())
    click.echo(click.style("✓ Tables dropped", fg="green"))


@db_group.command()
@click.option("--revision", default="head", show_default=True, help="Target revision")
def migrate(revision: str) -> None:
    """Run Alembic migrations up to a revision."""
    click.echo(click.style(f"Upgrading schema to {revision}...", fg="yellow"))
    command.upgrade(get_alembic_config(), revision)
    click.echo(click.style("✓ Migrations applied", fg="green"))
