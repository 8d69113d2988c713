"""Proposal model — a community funding proposal."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from community_wallet.engine.models.associations import proposal_transactions
from community_wallet.engine.models.base import (
    ADDRESS_LENGTH,
    ID_LENGTH,
    Base,
    IdMixin,
    TimestampMixin,
)

if TYPE_CHECKING:
    from community_wallet.engine.models.transaction import Transaction


class AcceptanceStatus(enum.StrEnum):
    """Community decision on a proposal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FundingStatus(enum.StrEnum):
    """Whether the treasury paid out for a proposal."""

    PENDING = "pending"
    FUNDED = "funded"
    UNFUNDED = "unfunded"


class Proposal(Base, IdMixin, TimestampMixin):
    """A funding proposal voted on through an Idena oracle."""

    __tablename__ = "proposals"

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    oracle: Mapped[str | None] = mapped_column(
        String(ADDRESS_LENGTH), unique=True, nullable=True,
        comment="Oracle voting contract address",
    )
    wallet_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("wallets.id"), nullable=False, index=True,
        comment="Wallet current at proposal creation",
    )
    acceptance_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=AcceptanceStatus.PENDING.value
    )
    funding_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=FundingStatus.PENDING.value
    )

    transactions: Mapped[list[Transaction]] = relationship(
        "Transaction",
        secondary=proposal_transactions,
        lazy="selectin",
        order_by="Transaction.created_at",
    )

    @property
    def transaction_ids(self) -> list[str]:
        return [t.id for t in self.transactions]

    def __repr__(self) -> str:
        return f"<Proposal id={self.id} title={self.title!r}>"
