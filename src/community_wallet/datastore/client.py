"""Governance datastore: one async engine, short sessions, atomic promotions.

Repositories open a short-lived session per call. Promotions (wallet
activation, transaction execution) touch several tables and go through
:meth:`Datastore.unit_of_work`, which binds them to one database transaction.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from community_wallet.datastore.engines import create_engine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.orm import DeclarativeBase

    from community_wallet.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

_ERR_CLOSED = "Datastore is not open. Call open() first."


class Datastore:
    """Owns the SQLAlchemy engine and hands out sessions.

    Usage::

        ds = Datastore(config.db)
        await ds.open(base=Base)
        async with ds.unit_of_work() as session:
            ...  # committed together, or not at all
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    async def open(self, *, base: type[DeclarativeBase] | None = None) -> None:
        """Create the engine and session factory.

        Args:
            base: Declarative base whose tables are created if missing.
        """
        self._engine = create_engine(self._config)
        # Entities stay readable after commit; promotions re-fetch what they return
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        if base is not None:
            await self.create_schema(base)
        logger.debug("Datastore opened (%s)", self._config.engine)

    async def create_schema(self, base: type[DeclarativeBase]) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(base.metadata.create_all)

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError(_ERR_CLOSED)
        return self._engine

    def session(self) -> AsyncSession:
        """Return a new session; use it as an async context manager."""
        if self._sessions is None:
            raise RuntimeError(_ERR_CLOSED)
        return self._sessions()

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[AsyncSession]:
        """Yield a session whose writes commit together on normal exit.

        Any exception raised inside the block rolls every write back and
        propagates unchanged.
        """
        async with self.session() as session, session.begin():
            yield session

    async def ping(self) -> None:
        """Round-trip a trivial query; raises on a broken connection."""
        async with self.session() as session:
            await session.execute(text("SELECT 1"))
