"""Association tables backing the reference sets.

Composite primary keys make every set duplicate-free at the storage layer.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, String, Table

from community_wallet.engine.models.base import ID_LENGTH, Base

wallet_transactions = Table(
    "wallet_transactions",
    Base.metadata,
    Column(
        "wallet_id",
        String(ID_LENGTH),
        ForeignKey("wallets.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "transaction_id",
        String(ID_LENGTH),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

proposal_transactions = Table(
    "proposal_transactions",
    Base.metadata,
    Column(
        "proposal_id",
        String(ID_LENGTH),
        ForeignKey("proposals.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "transaction_id",
        String(ID_LENGTH),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

user_wallets = Table(
    "user_wallets",
    Base.metadata,
    Column(
        "user_id",
        String(ID_LENGTH),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "wallet_id",
        String(ID_LENGTH),
        ForeignKey("wallets.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)
