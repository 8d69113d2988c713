"""GovernanceEngine — central engine client owning all services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from community_wallet.config.settings import AppConfig
    from community_wallet.datastore.client import Datastore
    from community_wallet.engine.services.governance_service import GovernanceService
    from community_wallet.engine.services.promotion_service import PromotionService
    from community_wallet.metrics.collector import GovernanceMetrics
    from community_wallet.oracle.client import IdenaOracleClient

logger = logging.getLogger(__name__)

# Error messages
_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class GovernanceEngine:
    """Central engine that owns the datastore, oracle client and services.

    Provides lifecycle management and a service registry. An oracle client
    may be injected (tests pass an in-process fake); otherwise one is built
    from ``config.oracle`` and owned by the engine.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        oracle: IdenaOracleClient | Any | None = None,
        metrics: GovernanceMetrics | None = None,
    ) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration with datastore and oracle settings.
            oracle: Optional pre-built oracle client. The engine does not close
                an injected client.
            metrics: Optional metrics instance (a fresh registry otherwise).
        """
        self._config = config
        self._initialized = False

        # Infrastructure components
        self._datastore: Datastore | None = None
        self._oracle = oracle
        self._owns_oracle = oracle is None
        self._metrics = metrics

        # Services
        self._promotion_service: PromotionService | None = None
        self._governance_service: GovernanceService | None = None

    async def initialize(self) -> None:
        """Open the datastore, create tables, connect the oracle and build services.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        # Import here to avoid circular deps
        from community_wallet.datastore.client import Datastore
        from community_wallet.datastore.migrations import run_auto_migrate
        from community_wallet.metrics.collector import GovernanceMetrics

        if self._metrics is None:
            self._metrics = GovernanceMetrics()

        # Initialize datastore
        self._datastore = Datastore(self._config.db)
        await self._datastore.open()
        await run_auto_migrate(self._datastore.engine)
        await self._ensure_governance_state()
        await self._ensure_admin()

        # Initialize oracle client
        if self._oracle is None:
            from community_wallet.oracle.client import IdenaOracleClient

            self._oracle = IdenaOracleClient(self._config.oracle, metrics=self._metrics)
            await self._oracle.connect()

        # Initialize services
        from community_wallet.engine.services.governance_service import GovernanceService
        from community_wallet.engine.services.promotion_service import PromotionService

        self._promotion_service = PromotionService(self)
        self._governance_service = GovernanceService(self)

        self._initialized = True
        logger.info("Governance engine initialized (db=%s)", self._config.db.engine)

    async def close(self) -> None:
        """Gracefully shut down all services and connections.

        Can be called multiple times (idempotent).
        """
        if not self._initialized:
            return

        # Tear down services
        self._governance_service = None
        self._promotion_service = None

        # Close oracle client
        if self._oracle is not None and self._owns_oracle:
            await self._oracle.close()
            self._oracle = None

        # Close datastore
        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._initialized = False
        logger.info("Governance engine closed")

    async def health_check(self) -> dict[str, str]:
        """Check health of infrastructure components.

        Returns:
            Dict mapping component name to status string.
        """
        status: dict[str, str] = {}

        if self._datastore is not None and self._datastore.is_open:
            try:
                await self._datastore.ping()
                status["datastore"] = "ok"
            except Exception as exc:  # noqa: BLE001
                status["datastore"] = f"error: {exc}"
        else:
            status["datastore"] = "not initialized"

        if self._oracle is None:
            status["oracle"] = "not initialized"
        elif getattr(self._oracle, "is_connected", True):
            status["oracle"] = "ok"
        else:
            status["oracle"] = "disconnected"

        return status

    async def _ensure_governance_state(self) -> None:
        """Seed the singleton governance-state row on first start."""
        from community_wallet.engine.models.governance_state import STATE_ROW_ID, GovernanceState

        async with self.datastore.session() as session:
            if await session.get(GovernanceState, STATE_ROW_ID) is None:
                session.add(GovernanceState(id=STATE_ROW_ID, current_round=0))
                await session.commit()

    async def _ensure_admin(self) -> None:
        """Create the configured bootstrap admin if no such user exists."""
        if not self._config.admin_address:
            return

        from sqlalchemy import select

        from community_wallet.engine.models.user import Role, User
        from community_wallet.utils.address import normalize_address

        address = normalize_address(self._config.admin_address)
        async with self.datastore.session() as session:
            result = await session.execute(select(User).where(User.address == address))
            if result.scalar_one_or_none() is None:
                session.add(User(address=address, role=Role.ADMIN.value, wallets=[]))
                await session.commit()
                logger.info("Seeded bootstrap admin %s", address)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        """Check if the engine is initialized."""
        return self._initialized

    @property
    def config(self) -> AppConfig:
        """Get the application configuration."""
        return self._config

    @property
    def datastore(self) -> Datastore:
        """Get the datastore instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def oracle(self) -> IdenaOracleClient:
        """Get the chain oracle client."""
        if self._oracle is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._oracle

    @property
    def metrics(self) -> GovernanceMetrics:
        """Get the governance metrics."""
        if self._metrics is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._metrics

    @property
    def promotion_service(self) -> PromotionService:
        """Get the promotion service."""
        if self._promotion_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._promotion_service

    @property
    def governance_service(self) -> GovernanceService:
        """Get the governance facade."""
        if self._governance_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._governance_service
