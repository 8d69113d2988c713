"""Alembic migration environment for the governance schema.

Runs against the async engine configured for the application: the DSN
comes from ``sqlalchemy.url`` in ``alembic.ini`` when set, otherwise from
``AppConfig().db.dsn`` (so ``CWALLET_DB__DSN`` applies). Offline mode
emits SQL without connecting.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from community_wallet.config.settings import AppConfig
from community_wallet.engine.models import ALL_MODELS, Base  # noqa: F401 - registers tables

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", AppConfig().db.dsn)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Generate the migration SQL script without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:  # type: ignore[no-untyped-def]
    # Batch mode lets ALTER-style revisions run on SQLite too
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
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
