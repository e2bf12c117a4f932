"""
Alembic Migration Environment
===============================

What:  Runs MindVault schema migrations on the async SQLAlchemy engine.
How:   Takes the URL from mindvault.config (DATABASE_URL), never from
       alembic.ini, and registers all four models for --autogenerate.

Migrations only touch schema. Converting existing plaintext rows to
encrypted tokens is a data step: run `mindvault-backfill` after upgrade.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from mindvault.config import settings
from mindvault.database import Base

# Registers the tables on Base.metadata
from mindvault.models import ChatMessage, ChatSession, JournalEntry, WellnessCheck  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
config.set_main_option("sqlalchemy.url", settings.database_url)

# Protected columns are TEXT/JSONB; a type change there must show up in autogenerate
COMPARE_TYPE = True


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout (`alembic upgrade head --sql`)."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=COMPARE_TYPE,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=COMPARE_TYPE,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    # NullPool: a migration run is one short-lived connection
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
