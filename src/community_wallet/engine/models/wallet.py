"""Wallet model — an activated multisig treasury wallet."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from community_wallet.engine.models.associations import wallet_transactions
from community_wallet.engine.models.base import ADDRESS_LENGTH, Base, IdMixin, TimestampMixin

if TYPE_CHECKING:
    from community_wallet.engine.models.transaction import Transaction


class Wallet(Base, IdMixin, TimestampMixin):
    """A promoted draft wallet holding the full signer set.

    Wallets are ordered by ``round``; the highest round is the current
    wallet. ``transactions`` only ever grows.
    """

    __tablename__ = "wallets"

    address: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), unique=True, nullable=False, index=True
    )
    author: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    signers: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    round: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)

    transactions: Mapped[list[Transaction]] = relationship(
        "Transaction",
        secondary=wallet_transactions,
        lazy="selectin",
        order_by="Transaction.created_at",
    )

    @property
    def transaction_ids(self) -> list[str]:
        return [t.id for t in self.transactions]

    def __repr__(self) -> str:
        return f"<Wallet address={self.address} round={self.round}>"
