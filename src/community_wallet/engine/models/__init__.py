"""Governance data models (SQLAlchemy ORM).

Import :data:`ALL_MODELS` for migration and table creation.
"""

from community_wallet.engine.models.base import Base, IdMixin, TimestampMixin, new_id
from community_wallet.engine.models.draft_transaction import DraftTransaction, TransactionCategory
from community_wallet.engine.models.draft_wallet import DraftWallet
from community_wallet.engine.models.governance_state import GovernanceState
from community_wallet.engine.models.proposal import AcceptanceStatus, FundingStatus, Proposal
from community_wallet.engine.models.transaction import Transaction
from community_wallet.engine.models.user import ROLE_RIGHTS, Right, Role, User
from community_wallet.engine.models.wallet import Wallet

ALL_MODELS: list[type[Base]] = [
    DraftWallet,
    Wallet,
    Proposal,
    DraftTransaction,
    Transaction,
    User,
    GovernanceState,
]

__all__ = [
    "ALL_MODELS",
    "ROLE_RIGHTS",
    "AcceptanceStatus",
    "Base",
    "DraftTransaction",
    "DraftWallet",
    "FundingStatus",
    "GovernanceState",
    "IdMixin",
    "Proposal",
    "Right",
    "Role",
    "TimestampMixin",
    "Transaction",
    "TransactionCategory",
    "User",
    "Wallet",
    "new_id",
]
