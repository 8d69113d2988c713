"""Transaction repository (read side; rows are written by promotion only)."""

from __future__ import annotations

from community_wallet.engine.database.repository.base import Repository
from community_wallet.engine.models.transaction import Transaction


class TransactionRepository(Repository[Transaction]):
    """Data access layer for executed transactions."""

    model = Transaction
    filterable = frozenset(
        {"title", "category", "proposal_id", "wallet_id", "recipient", "push", "tx"}
    )

    async def get_by_tx(self, tx_hash: str) -> Transaction | None:
        """Find a transaction by its on-chain hash."""
        return await self.find_one(tx=tx_hash)
