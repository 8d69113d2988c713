"""Draft transaction repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from community_wallet.engine.database.repository.base import Repository
from community_wallet.engine.models.draft_transaction import DraftTransaction
from community_wallet.errors.definitions import (
    ErrDraftTransactionNotFound,
    ErrDraftTransactionWalletTaken,
)
from community_wallet.utils.address import same_address_set

if TYPE_CHECKING:
    from collections.abc import Sequence


class DraftTransactionRepository(Repository[DraftTransaction]):
    """Data access layer for draft transactions."""

    model = DraftTransaction
    filterable = frozenset({"title", "category", "proposal_id", "wallet_id", "recipient"})
    duplicate_error = ErrDraftTransactionWalletTaken

    async def get_by_wallet(self, wallet_id: str) -> DraftTransaction | None:
        return await self.find_one(wallet_id=wallet_id)

    async def append_send(
        self,
        draft_transaction_id: str,
        signer: str,
        expected_sends: Sequence[str],
    ) -> DraftTransaction | None:
        """Append *signer* to ``sends`` if they still equal *expected_sends*.

        Same version-counter compare-and-swap as draft wallet signers.

        Returns:
            The updated draft transaction, or ``None`` when the compare-and-swap lost.

        Raises:
            NotFoundError: If the draft transaction no longer exists.
        """
        async with self._ds.session() as session:
            stmt = select(DraftTransaction).where(DraftTransaction.id == draft_transaction_id)
            draft = (await session.execute(stmt)).scalar_one_or_none()
            if draft is None:
                raise ErrDraftTransactionNotFound

            current = list(draft.sends or [])
            if not same_address_set(current, list(expected_sends)):
                return None

            seen = draft.version
            result = await session.execute(
                update(DraftTransaction)
                .where(DraftTransaction.id == draft.id, DraftTransaction.version == seen)
                .values(sends=[*current, signer], version=seen + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:  # type: ignore[union-attr]
                await session.rollback()
                if await self.get_by_id(draft.id) is None:
                    raise ErrDraftTransactionNotFound
                return None
            await session.commit()
            await session.refresh(draft)
            return draft
