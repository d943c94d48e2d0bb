"""Alembic environment configuration for migrations from SQLAlchemy models"""
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from judging.core.config import settings
from judging.core.database import Base

# Import all models so Alembic can detect them
from judging.db.models import *  # noqa: F401, F403

# this is the Alembic Config object
config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Set the SQLAlchemy URL from settings (use sync URL for Alembic)
# Ensure it uses psycopg2 (sync driver), not asyncpg
database_url_sync = settings.database_url_sync
if database_url_sync.startswith('postgresql+asyncpg://'):
    database_url_sync = database_url_sync.replace('postgresql+asyncpg://', 'postgresql://', 1)

config.set_main_option("sqlalchemy.url", database_url_sync)

# add your model's MetaData object here
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (generates SQL only)."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """Run migrations in 'online' mode."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER constraints in place
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode with a sync engine."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        future=True,
    )

    with connectable.connect() as connection:
        do_run_migrations(connection)

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
