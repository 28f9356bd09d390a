"""
Alembic Migration Environment

This file configures the Alembic migration environment.

What happens here:
------------------
1. Load application settings (database URL)
2. Import all models so their tables are registered on Base.metadata
3. Run migrations offline (emit SQL) or online (async engine)

Usage:
------
    alembic upgrade head
    alembic revision --autogenerate -m "describe change"
"""

import asyncio
import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

# Make the phrasebook package importable when alembic runs from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from phrasebook.core.config import settings  # noqa: E402
from phrasebook.db.base import Base  # noqa: E402

# Registers every table on Base.metadata
from phrasebook.models import AppSettings, Phrase  # noqa: E402,F401

# ================================
# Alembic Config Object
# ================================

config = context.config

# The application settings own the database URL, not alembic.ini
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    Emits the SQL statements instead of executing them, e.g. to review a
    migration before applying it by hand.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations with the given connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Create an async engine (asyncpg) and run migrations through run_sync."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against the configured database."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
