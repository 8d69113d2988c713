"""Proposal repository."""

from __future__ import annotations

from community_wallet.engine.database.repository.base import Repository
from community_wallet.engine.models.proposal import Proposal
from community_wallet.errors.definitions import ErrProposalOracleTaken


class ProposalRepository(Repository[Proposal]):
    """Data access layer for funding proposals."""

    model = Proposal
    filterable = frozenset(
        {"title", "oracle", "wallet_id", "acceptance_status", "funding_status"}
    )
    duplicate_error = ErrProposalOracleTaken
