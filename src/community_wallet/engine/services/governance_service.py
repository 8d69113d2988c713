"""Governance service — the operations exposed to the request layer.

Sequences the "validate, then mutate" pairs of :class:`PromotionService`
and delegates plain CRUD to the repositories. Wallets and transactions are
read-only here; they only come into being through promotion.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from community_wallet.engine.database.repository.draft_transactions import (
    DraftTransactionRepository,
)
from community_wallet.engine.database.repository.draft_wallets import DraftWalletRepository
from community_wallet.engine.database.repository.proposals import ProposalRepository
from community_wallet.engine.database.repository.transactions import TransactionRepository
from community_wallet.engine.database.repository.users import UserRepository
from community_wallet.engine.database.repository.wallets import WalletRepository
from community_wallet.engine.models.base import AMOUNT_SCALE
from community_wallet.engine.models.draft_transaction import DraftTransaction, TransactionCategory
from community_wallet.engine.models.draft_wallet import DraftWallet
from community_wallet.engine.models.proposal import AcceptanceStatus, FundingStatus, Proposal
from community_wallet.errors.definitions import (
    ErrAmountPrecision,
    ErrCurrentWalletNotFound,
    ErrDraftTransactionConflict,
    ErrDraftTransactionNotFound,
    ErrDraftTransactionWalletTaken,
    ErrDraftWalletConflict,
    ErrDraftWalletNotFound,
    ErrInvalidAmount,
    ErrInvalidFilter,
    ErrMissingCategoryDescription,
    ErrProposalNotFound,
    ErrTransactionHashTaken,
    ErrTransactionNotFound,
    ErrUserNotFound,
    ErrWalletNotFound,
)
from community_wallet.errors.governance_errors import BadRequestError
from community_wallet.utils.address import normalize_address

if TYPE_CHECKING:
    from community_wallet.engine.client import GovernanceEngine
    from community_wallet.engine.database.repository.base import Page
    from community_wallet.engine.models.transaction import Transaction
    from community_wallet.engine.models.user import User
    from community_wallet.engine.models.wallet import Wallet
    from community_wallet.engine.services.promotion_service import PromotionService

logger = logging.getLogger(__name__)

_PROPOSAL_EDITABLE = frozenset(
    {"title", "description", "oracle", "acceptance_status", "funding_status"}
)

# Filters holding addresses are normalized before querying
_ADDRESS_FILTERS = frozenset({"address", "author", "oracle", "recipient", "push"})


def _parse_amount(amount: Any) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ErrInvalidAmount from exc
    if not value.is_finite() or value <= 0:
        raise ErrInvalidAmount
    if len(format(value, "f").partition(".")[2].rstrip("0")) > AMOUNT_SCALE:
        raise ErrAmountPrecision
    return value


def _parse_enum(enum_cls: type, value: str, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError as exc:
        raise BadRequestError(f"invalid {field}: {value}", code="invalid-enum") from exc


def _normalize_filters(filters: dict[str, Any] | None) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in (filters or {}).items():
        if value is None:
            continue
        normalized[key] = normalize_address(value) if key in _ADDRESS_FILTERS else value
    return normalized


class GovernanceService:
    """Facade over draft wallets, wallets, proposals and transactions."""

    def __init__(self, engine: GovernanceEngine) -> None:
        self._engine = engine
        self._draft_wallets = DraftWalletRepository(engine.datastore)
        self._wallets = WalletRepository(engine.datastore)
        self._proposals = ProposalRepository(engine.datastore)
        self._draft_transactions = DraftTransactionRepository(engine.datastore)
        self._transactions = TransactionRepository(engine.datastore)
        self._users = UserRepository(engine.datastore)

    @property
    def _promotion(self) -> PromotionService:
        return self._engine.promotion_service

    # ------------------------------------------------------------------
    # Draft wallets
    # ------------------------------------------------------------------

    async def create_draft_wallet(self, address: str, author: str) -> DraftWallet:
        """Register a freshly deployed multisig as a draft wallet."""
        address = normalize_address(address)
        author = normalize_address(author)
        await self._promotion.validate_new_multisig_wallet(address, author)
        draft = await self._draft_wallets.create(
            DraftWallet(address=address, author=author, signers=[], version=0)
        )
        logger.info("Created draft wallet %s by %s", address, author)
        return draft

    async def add_signer(self, author: str, signer: str, contract: str) -> DraftWallet:
        """Add *signer* to *author*'s draft wallet once it joined on-chain.

        Raises:
            ConflictError: If another signer was added concurrently.
            NotFoundError: If the draft wallet disappeared before the write.
        """
        expected = await self._promotion.validate_new_signer_for_draft_wallet(
            author, signer, contract
        )
        draft = await self._promotion.add_signer_to_draft_wallet(contract, signer, expected)
        if draft is None:
            raise ErrDraftWalletConflict
        return draft

    async def query_draft_wallets(
        self,
        filters: dict[str, Any] | None = None,
        *,
        sort_by: str | None = None,
        limit: int | None = None,
        page: int | None = None,
    ) -> Page[DraftWallet]:
        return await self._draft_wallets.paginate(
            _normalize_filters(filters), sort_by=sort_by, limit=limit, page=page
        )

    async def get_draft_wallet(self, draft_wallet_id: str) -> DraftWallet:
        draft = await self._draft_wallets.get_by_id(draft_wallet_id)
        if draft is None:
            raise ErrDraftWalletNotFound
        return draft

    async def get_draft_wallet_by_author(self, author: str) -> DraftWallet:
        draft = await self._draft_wallets.get_by_author(normalize_address(author))
        if draft is None:
            raise ErrDraftWalletNotFound
        return draft

    async def activate_draft_wallet(self, draft_wallet_id: str) -> Wallet:
        return await self._promotion.activate_draft_wallet(draft_wallet_id)

    async def delete_draft_wallet(self, draft_wallet_id: str) -> DraftWallet:
        draft = await self._draft_wallets.delete_by_id(draft_wallet_id)
        if draft is None:
            raise ErrDraftWalletNotFound
        logger.info("Deleted draft wallet %s", draft.address)
        return draft

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    async def query_wallets(
        self,
        filters: dict[str, Any] | None = None,
        *,
        sort_by: str | None = None,
        limit: int | None = None,
        page: int | None = None,
    ) -> Page[Wallet]:
        return await self._wallets.paginate(
            _normalize_filters(filters), sort_by=sort_by, limit=limit, page=page
        )

    async def get_wallet(self, wallet_id: str) -> Wallet:
        wallet = await self._wallets.get_by_id(wallet_id)
        if wallet is None:
            raise ErrWalletNotFound
        return wallet

    async def get_current_wallet(self) -> Wallet | None:
        return await self._promotion.get_current_wallet()

    # ------------------------------------------------------------------
    # Proposals
    # ------------------------------------------------------------------

    async def create_proposal(
        self,
        title: str,
        *,
        description: str | None = None,
        oracle: str | None = None,
    ) -> Proposal:
        """Create a pending proposal against the current wallet.

        Raises:
            NotFoundError: If no wallet has been activated yet.
            BadRequestError: If *oracle* is malformed or already used.
        """
        wallet = await self.get_current_wallet()
        if wallet is None:
            raise ErrCurrentWalletNotFound
        proposal = Proposal(
            title=title,
            description=description,
            oracle=normalize_address(oracle) if oracle else None,
            wallet_id=wallet.id,
            acceptance_status=AcceptanceStatus.PENDING.value,
            funding_status=FundingStatus.PENDING.value,
            transactions=[],
        )
        return await self._proposals.create(proposal)

    async def edit_proposal(self, proposal_id: str, patch: dict[str, Any]) -> Proposal:
        """Apply a partial update to a proposal.

        Only title, description, oracle and the two status fields can change.
        """
        unknown = set(patch) - _PROPOSAL_EDITABLE
        if unknown:
            raise ErrInvalidFilter

        changes = dict(patch)
        if changes.get("oracle"):
            changes["oracle"] = normalize_address(changes["oracle"])
        if "acceptance_status" in changes:
            changes["acceptance_status"] = _parse_enum(
                AcceptanceStatus, changes["acceptance_status"], "acceptance_status"
            )
        if "funding_status" in changes:
            changes["funding_status"] = _parse_enum(
                FundingStatus, changes["funding_status"], "funding_status"
            )

        proposal = await self._proposals.update_by_id(proposal_id, changes)
        if proposal is None:
            raise ErrProposalNotFound
        return proposal

    async def delete_proposal(self, proposal_id: str) -> Proposal:
        proposal = await self._proposals.delete_by_id(proposal_id)
        if proposal is None:
            raise ErrProposalNotFound
        return proposal

    async def query_proposals(
        self,
        filters: dict[str, Any] | None = None,
        *,
        sort_by: str | None = None,
        limit: int | None = None,
        page: int | None = None,
    ) -> Page[Proposal]:
        return await self._proposals.paginate(
            _normalize_filters(filters), sort_by=sort_by, limit=limit, page=page
        )

    async def get_proposal(self, proposal_id: str) -> Proposal:
        proposal = await self._proposals.get_by_id(proposal_id)
        if proposal is None:
            raise ErrProposalNotFound
        return proposal

    # ------------------------------------------------------------------
    # Draft transactions
    # ------------------------------------------------------------------

    async def create_draft_transaction(
        self,
        *,
        title: str,
        category: str,
        wallet_id: str,
        recipient: str,
        amount: Any,
        proposal_id: str | None = None,
        category_other_description: str | None = None,
    ) -> DraftTransaction:
        """Open a payment draft on *wallet_id*.

        Raises:
            BadRequestError: On malformed fields, or if the wallet already
                has a draft transaction.
            NotFoundError: If the wallet or proposal does not exist.
        """
        category = _parse_enum(TransactionCategory, category, "category")
        if category == TransactionCategory.OTHER and not category_other_description:
            raise ErrMissingCategoryDescription
        recipient = normalize_address(recipient)
        value = _parse_amount(amount)

        if await self._wallets.get_by_id(wallet_id) is None:
            raise ErrWalletNotFound
        if proposal_id is not None and await self._proposals.get_by_id(proposal_id) is None:
            raise ErrProposalNotFound
        if await self._draft_transactions.get_by_wallet(wallet_id) is not None:
            raise ErrDraftTransactionWalletTaken

        draft = await self._draft_transactions.create(
            DraftTransaction(
                title=title,
                category=category,
                category_other_description=(
                    category_other_description if category == TransactionCategory.OTHER else None
                ),
                proposal_id=proposal_id,
                wallet_id=wallet_id,
                recipient=recipient,
                amount=value,
                sends=[],
                version=0,
            )
        )
        logger.info("Created draft transaction %s on wallet %s", draft.id, wallet_id)
        return draft

    async def sign_draft_transaction(
        self,
        draft_transaction_id: str,
        signer: str,
    ) -> DraftTransaction:
        """Record *signer*'s on-chain vote on a draft transaction.

        Raises:
            ConflictError: If another send was recorded concurrently.
            NotFoundError: If the draft transaction disappeared before the write.
        """
        expected = await self._promotion.validate_new_signer_for_draft_transaction(
            draft_transaction_id, signer
        )
        draft = await self._promotion.add_send_to_draft_transaction(
            draft_transaction_id, signer, expected
        )
        if draft is None:
            raise ErrDraftTransactionConflict
        return draft

    async def execute_draft_transaction(
        self,
        draft_transaction_id: str,
        broadcaster: str,
        tx_hash: str,
    ) -> Transaction:
        """Promote a draft transaction once its push is confirmed on-chain.

        Retrying with an already-recorded *tx_hash* returns the recorded
        transaction instead of failing.

        Raises:
            ConflictError: If *tx_hash* was recorded for a different draft.
        """
        tx_hash = tx_hash.strip().lower()
        existing = await self._transactions.get_by_tx(tx_hash)
        if existing is not None:
            if existing.draft_transaction_id != draft_transaction_id:
                raise ErrTransactionHashTaken
            logger.info("Transaction %s already recorded, returning it", tx_hash)
            return existing

        await self._promotion.validate_execution_of_draft_transaction(
            draft_transaction_id, tx_hash
        )
        return await self._promotion.execute_draft_transaction(
            draft_transaction_id, broadcaster, tx_hash
        )

    async def query_draft_transactions(
        self,
        filters: dict[str, Any] | None = None,
        *,
        sort_by: str | None = None,
        limit: int | None = None,
        page: int | None = None,
    ) -> Page[DraftTransaction]:
        return await self._draft_transactions.paginate(
            _normalize_filters(filters), sort_by=sort_by, limit=limit, page=page
        )

    async def get_draft_transaction(self, draft_transaction_id: str) -> DraftTransaction:
        draft = await self._draft_transactions.get_by_id(draft_transaction_id)
        if draft is None:
            raise ErrDraftTransactionNotFound
        return draft

    async def delete_draft_transaction(self, draft_transaction_id: str) -> DraftTransaction:
        draft = await self._draft_transactions.delete_by_id(draft_transaction_id)
        if draft is None:
            raise ErrDraftTransactionNotFound
        return draft

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def query_transactions(
        self,
        filters: dict[str, Any] | None = None,
        *,
        sort_by: str | None = None,
        limit: int | None = None,
        page: int | None = None,
    ) -> Page[Transaction]:
        return await self._transactions.paginate(
            _normalize_filters(filters), sort_by=sort_by, limit=limit, page=page
        )

    async def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = await self._transactions.get_by_id(transaction_id)
        if transaction is None:
            raise ErrTransactionNotFound
        return transaction

    async def find_transaction_by_tx(self, tx_hash: str) -> Transaction | None:
        return await self._transactions.get_by_tx(tx_hash.strip().lower())

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user_by_address(self, address: str) -> User:
        user = await self._users.get_by_address(normalize_address(address))
        if user is None:
            raise ErrUserNotFound
        return user

    async def count_admins(self) -> int:
        return await self._users.count_admins()
