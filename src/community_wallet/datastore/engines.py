"""Database engine factories — PostgreSQL, SQLite.

Builds the async SQLAlchemy engine used by the datastore:
- PostgreSQL (asyncpg driver) with a bounded connection pool
- SQLite (aiosqlite driver) with foreign-key enforcement switched on, so
  reference cleanup (proposal links, association rows) behaves the same
  on both backends; in-memory databases share one connection
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from community_wallet.config.settings import DatabaseConfig


def _is_sqlite(dsn: str) -> bool:
    return dsn.startswith("sqlite")


def _is_memory(dsn: str) -> bool:
    return ":memory:" in dsn or dsn.rstrip("/").endswith("sqlite+aiosqlite:")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from database configuration.

    Args:
        config: Database configuration with DSN, pool settings, etc.

    Returns:
        A configured ``AsyncEngine`` ready for use.
    """
    kwargs: dict[str, Any] = {
        "echo": config.debug_sql,
    }

    if not _is_sqlite(config.dsn):
        kwargs["pool_size"] = config.max_idle_connections
        kwargs["max_overflow"] = config.max_open_connections - config.max_idle_connections
        kwargs["pool_pre_ping"] = True
    elif _is_memory(config.dsn):
        # every session must see the same in-memory database
        kwargs["poolclass"] = StaticPool

    engine = create_async_engine(config.dsn, **kwargs)

    if _is_sqlite(config.dsn):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    return engine
