"""GovernanceState model — pointer to the current wallet."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from community_wallet.engine.models.base import ID_LENGTH, Base

STATE_ROW_ID = 1


class GovernanceState(Base):
    """Singleton row tracking the highest activated round.

    Advanced inside the activation transaction with a compare-and-swap on
    ``current_round``, so two activations can never claim the same round.
    """

    __tablename__ = "governance_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=STATE_ROW_ID)
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_wallet_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), ForeignKey("wallets.id"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<GovernanceState round={self.current_round} wallet={self.current_wallet_id}>"
