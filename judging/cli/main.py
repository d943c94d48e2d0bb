"""Main CLI entry point for judging workflow commands."""
from datetime import timedelta

import click

from judging.cli import db
from judging.core.auth import create_access_token
from judging.db.enums import Role


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Judging certification workflow CLI."""
    pass


# Register command groups
cli.add_command(db.db_group, name="db")


@cli.command()
@click.argument("user_id")
@click.argument("role", type=click.Choice([role.value for role in Role], case_sensitive=False))
@click.option("--minutes", type=int, default=None, help="Token lifetime in minutes")
def token(user_id: str, role: str, minutes: int) -> None:
    """
    Issue a bearer token for USER_ID acting as ROLE.

    Intended for local development and smoke tests against the API.
    """
    expires = timedelta(minutes=minutes) if minutes else None
    click.echo(create_access_token(user_id, Role.parse(role), expires_delta=expires))


if __name__ == "__main__":
    cli()
