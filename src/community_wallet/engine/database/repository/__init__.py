"""Repositories — data access layer.

Every entity kind shares the generic :class:`Repository` CRUD and
pagination; subclasses add the lookups and conditional writes their
entity needs.
"""

from community_wallet.engine.database.repository.base import Page, Repository, parse_sort_by
from community_wallet.engine.database.repository.draft_transactions import (
    DraftTransactionRepository,
)
from community_wallet.engine.database.repository.draft_wallets import DraftWalletRepository
from community_wallet.engine.database.repository.proposals import ProposalRepository
from community_wallet.engine.database.repository.transactions import TransactionRepository
from community_wallet.engine.database.repository.users import UserRepository
from community_wallet.engine.database.repository.wallets import WalletRepository

__all__ = [
    "DraftTransactionRepository",
    "DraftWalletRepository",
    "Page",
    "ProposalRepository",
    "Repository",
    "TransactionRepository",
    "UserRepository",
    "WalletRepository",
    "parse_sort_by",
]
