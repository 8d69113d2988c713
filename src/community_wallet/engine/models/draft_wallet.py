"""DraftWallet model — a multisig contract collecting its signers."""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from community_wallet.engine.models.base import ADDRESS_LENGTH, Base, IdMixin, TimestampMixin


class DraftWallet(Base, IdMixin, TimestampMixin):
    """A deployed multisig contract that has not reached its signer quorum.

    Each author may hold one draft at a time. ``signers`` grows one address
    per accepted addition; ``version`` is bumped on every addition and is the
    compare-and-swap token for concurrent additions.
    """

    __tablename__ = "draft_wallets"

    address: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), unique=True, nullable=False, index=True,
        comment="Multisig contract address",
    )
    author: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), unique=True, nullable=False, index=True,
        comment="Deployer of the multisig contract",
    )
    signers: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<DraftWallet address={self.address} signers={len(self.signers or [])}>"
