"""Draft wallet repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from community_wallet.engine.database.repository.base import Repository
from community_wallet.engine.models.draft_wallet import DraftWallet
from community_wallet.errors.definitions import ErrDraftWalletAddressTaken, ErrDraftWalletNotFound
from community_wallet.utils.address import same_address_set

if TYPE_CHECKING:
    from collections.abc import Sequence


class DraftWalletRepository(Repository[DraftWallet]):
    """Data access layer for draft wallets."""

    model = DraftWallet
    filterable = frozenset({"address", "author"})
    duplicate_error = ErrDraftWalletAddressTaken

    async def get_by_address(self, address: str) -> DraftWallet | None:
        return await self.find_one(address=address)

    async def get_by_author(self, author: str) -> DraftWallet | None:
        return await self.find_one(author=author)

    async def is_address_taken(self, address: str) -> bool:
        return await self.exists(address=address)

    async def is_author_present(self, author: str) -> bool:
        return await self.exists(author=author)

    async def append_signer(
        self,
        address: str,
        signer: str,
        expected_signers: Sequence[str],
    ) -> DraftWallet | None:
        """Append *signer* if the stored signers still equal *expected_signers*.

        The row is read and its signer set compared inside one transaction,
        then written with ``UPDATE ... WHERE version = :seen``. A concurrent
        writer that got there first bumps the version and this update
        touches zero rows.

        Returns:
            The updated draft wallet, or ``None`` when the compare-and-swap lost.

        Raises:
            NotFoundError: If the draft wallet no longer exists.
        """
        async with self._ds.session() as session:
            stmt = select(DraftWallet).where(DraftWallet.address == address)
            draft = (await session.execute(stmt)).scalar_one_or_none()
            if draft is None:
                raise ErrDraftWalletNotFound

            current = list(draft.signers or [])
            if not same_address_set(current, list(expected_signers)):
                return None

            seen = draft.version
            result = await session.execute(
                update(DraftWallet)
                .where(DraftWallet.id == draft.id, DraftWallet.version == seen)
                .values(signers=[*current, signer], version=seen + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:  # type: ignore[union-attr]
                await session.rollback()
                if await self.get_by_id(draft.id) is None:
                    raise ErrDraftWalletNotFound
                return None
            await session.commit()
            await session.refresh(draft)
            return draft
