"""DraftTransaction model — a treasury payment collecting signatures."""

from __future__ import annotations

import enum
from decimal import Decimal  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[Decimal]

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from community_wallet.engine.models.base import (
    ADDRESS_LENGTH,
    ID_LENGTH,
    Base,
    IdMixin,
    TimestampMixin,
)


class TransactionCategory(enum.StrEnum):
    """Purpose of a treasury payment."""

    PAY_FOR_ORACLE = "payForOracle"
    FUND_PROPOSAL = "fundProposal"
    SETUP_NEW_WALLET = "setupNewWallet"
    TRANSFER_FUNDS_TO_NEW_WALLET = "transferFundsToNewWallet"
    DELEGATE_REWARDS = "delegateRewards"
    OTHER = "other"


class DraftTransaction(Base, IdMixin, TimestampMixin):
    """A payment out of a wallet awaiting its 3-of-5 sends.

    A wallet has at most one draft at a time. ``sends`` lists the signers
    whose on-chain votes mirror this draft; ``version`` is bumped on every
    accepted send.
    """

    __tablename__ = "draft_transactions"

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    category_other_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    proposal_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), ForeignKey("proposals.id", ondelete="SET NULL"), nullable=True
    )
    wallet_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("wallets.id"), unique=True, nullable=False
    )
    recipient: Mapped[str] = mapped_column(String(ADDRESS_LENGTH), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    sends: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<DraftTransaction id={self.id} sends={len(self.sends or [])}>"
