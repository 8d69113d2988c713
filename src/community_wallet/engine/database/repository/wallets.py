"""Wallet repository."""

from __future__ import annotations

from community_wallet.engine.database.repository.base import Repository
from community_wallet.engine.models.governance_state import STATE_ROW_ID, GovernanceState
from community_wallet.engine.models.wallet import Wallet
from community_wallet.errors.definitions import ErrWalletAddressTaken


class WalletRepository(Repository[Wallet]):
    """Data access layer for activated wallets."""

    model = Wallet
    filterable = frozenset({"address", "author", "round"})
    duplicate_error = ErrWalletAddressTaken

    async def get_by_address(self, address: str) -> Wallet | None:
        return await self.find_one(address=address)

    async def is_address_taken(self, address: str) -> bool:
        return await self.exists(address=address)

    async def get_current(self) -> Wallet | None:
        """Return the wallet the governance state points at, if any."""
        async with self._ds.session() as session:
            state = await session.get(GovernanceState, STATE_ROW_ID)
            if state is None or state.current_wallet_id is None:
                return None
            return await session.get(Wallet, state.current_wallet_id)

    async def get_current_round(self) -> int:
        """Return the highest activated round, ``0`` before the first activation."""
        async with self._ds.session() as session:
            state = await session.get(GovernanceState, STATE_ROW_ID)
            return state.current_round if state is not None else 0
