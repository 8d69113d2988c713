"""Transaction model — an executed treasury payment."""

from __future__ import annotations

from decimal import Decimal  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[Decimal]

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from community_wallet.engine.models.base import (
    ADDRESS_LENGTH,
    ID_LENGTH,
    Base,
    IdMixin,
    TimestampMixin,
)


class Transaction(Base, IdMixin, TimestampMixin):
    """Immutable record of a pushed multisig payment.

    Only created by executing a draft transaction; ``sends`` is the draft's
    final signer set and ``push`` the address that broadcast the payout.
    """

    __tablename__ = "transactions"

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    category_other_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    proposal_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), ForeignKey("proposals.id", ondelete="SET NULL"), nullable=True
    )
    wallet_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("wallets.id"), nullable=False, index=True
    )
    recipient: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    sends: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    push: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False)
    draft_transaction_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), nullable=True, index=True, comment="Draft this record was promoted from"
    )
    tx: Mapped[str] = mapped_column(
        String(128), unique=True, nullable=False, comment="On-chain transaction hash"
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} tx={self.tx[:18]}...>"
