"""Schema creation helpers.

Production deployments apply Alembic revisions (see ``alembic/``); the engine
and the test-suite create the schema directly from the ORM metadata.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from community_wallet.engine.models.base import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


async def run_auto_migrate(engine: AsyncEngine) -> None:
    """Create every governance table that does not exist yet.

    Args:
        engine: The async SQLAlchemy engine to migrate.
    """
    # Register every model with Base.metadata
    import community_wallet.engine.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all_tables(engine: AsyncEngine) -> None:
    """Drop all governance tables (test/dev utility only).

    Args:
        engine: The async SQLAlchemy engine.
    """
    import community_wallet.engine.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
