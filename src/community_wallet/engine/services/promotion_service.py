"""Promotion service — quorum checks and draft-to-canonical promotion.

Every step of the multisig lifecycle is cross-checked against the chain
oracle before anything is written:

- Draft wallet: fresh 3-of-5 multisig -> five signers join one at a time ->
  promoted to the next-round Wallet, signers become admins
- Draft transaction: signers vote on-chain -> three sends recorded ->
  push verified against the recipient's balance history -> promoted to an
  immutable Transaction

Signer and send additions are conditional writes guarded by a version
counter. Activation and execution each run as a single database
transaction so a failure at any step leaves the draft untouched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from community_wallet.engine.database.repository.draft_transactions import (
    DraftTransactionRepository,
)
from community_wallet.engine.database.repository.draft_wallets import DraftWalletRepository
from community_wallet.engine.database.repository.wallets import WalletRepository
from community_wallet.engine.models.draft_transaction import DraftTransaction
from community_wallet.engine.models.draft_wallet import DraftWallet
from community_wallet.engine.models.governance_state import STATE_ROW_ID, GovernanceState
from community_wallet.engine.models.proposal import Proposal
from community_wallet.engine.models.transaction import Transaction
from community_wallet.engine.models.user import Role, User
from community_wallet.engine.models.wallet import Wallet
from community_wallet.errors.definitions import (
    ErrBalanceChangeInconsistent,
    ErrBalanceChangeMissing,
    ErrContractInconsistent,
    ErrDraftTransactionNotEnoughSends,
    ErrDraftTransactionNotFound,
    ErrDraftTransactionSignerPresent,
    ErrDraftWalletAddressTaken,
    ErrDraftWalletAuthorPresent,
    ErrDraftWalletContractMismatch,
    ErrDraftWalletFull,
    ErrDraftWalletNotEnoughSigners,
    ErrDraftWalletNotFound,
    ErrDraftWalletRequired,
    ErrDraftWalletSignerPresent,
    ErrMultisigInconsistent,
    ErrMultisigNoSigners,
    ErrPushNotOnContract,
    ErrRoundConflict,
    ErrSendNotOnContract,
    ErrSignerNotOnContract,
    ErrSignersInconsistent,
    ErrTransactionExecutionFailed,
    ErrWalletActivationFailed,
    ErrWalletAddressTaken,
    ErrWalletNotFound,
)
from community_wallet.oracle.models import MULTISIG_CONTRACT_TYPE, PUSH_METHOD
from community_wallet.utils.address import normalize_address, same_address, same_address_set

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from community_wallet.engine.client import GovernanceEngine

logger = logging.getLogger(__name__)

# Quorum constants
WALLET_SIGNER_QUORUM = 5
MULTISIG_MIN_VOTES = 3
MULTISIG_MAX_VOTES = 5
TRANSACTION_SEND_QUORUM = 3


class PromotionService:
    """Validates and promotes draft wallets and draft transactions.

    ``validate_*`` methods are pure gates (oracle reads only); the matching
    mutation methods perform the write. Callers sequence the two, see
    :class:`~community_wallet.engine.services.governance_service.GovernanceService`.
    """

    def __init__(self, engine: GovernanceEngine) -> None:
        self._engine = engine
        self._draft_wallets = DraftWalletRepository(engine.datastore)
        self._wallets = WalletRepository(engine.datastore)
        self._draft_transactions = DraftTransactionRepository(engine.datastore)

    # ------------------------------------------------------------------
    # Draft wallets
    # ------------------------------------------------------------------

    async def validate_new_multisig_wallet(self, address: str, author: str) -> None:
        """Check that *address* is a fresh 3-of-5 multisig deployed by *author*.

        Raises:
            BadRequestError: If the address or author already has a draft wallet.
            ForbiddenError: If the on-chain contract does not match.
            OracleError: If the oracle is unavailable.
        """
        address = normalize_address(address)
        author = normalize_address(author)

        if await self._draft_wallets.is_address_taken(address):
            raise ErrDraftWalletAddressTaken
        if await self._draft_wallets.is_author_present(author):
            raise ErrDraftWalletAuthorPresent

        contract = await self._engine.oracle.get_contract(address)
        if (
            not same_address(contract.address, address)
            or contract.type != MULTISIG_CONTRACT_TYPE
            or not same_address(contract.author, author)
        ):
            raise ErrContractInconsistent

        multisig = await self._engine.oracle.get_multisig_contract(address)
        if (
            multisig.min_votes != MULTISIG_MIN_VOTES
            or multisig.max_votes != MULTISIG_MAX_VOTES
            or multisig.signers
        ):
            raise ErrMultisigInconsistent

    async def validate_new_signer_for_draft_wallet(
        self,
        author: str,
        signer: str,
        contract: str,
    ) -> list[str]:
        """Check that *signer* is exactly the next signer to join on-chain.

        Returns:
            The draft wallet's current signers, to be passed back as the
            precondition of :meth:`add_signer_to_draft_wallet`.

        Raises:
            NotFoundError: If *author* has no draft wallet.
            BadRequestError: If the draft is full or already holds *signer*.
            ForbiddenError: If *contract* or the on-chain signer set diverges.
            OracleError: If the oracle is unavailable.
        """
        author = normalize_address(author)
        signer = normalize_address(signer)
        contract = normalize_address(contract)

        draft = await self._draft_wallets.get_by_author(author)
        if draft is None:
            raise ErrDraftWalletRequired
        if draft.address != contract:
            raise ErrDraftWalletContractMismatch

        current = list(draft.signers or [])
        if len(current) >= WALLET_SIGNER_QUORUM:
            raise ErrDraftWalletFull
        if signer in current:
            raise ErrDraftWalletSignerPresent

        multisig = await self._engine.oracle.get_multisig_contract(contract)
        if multisig.signers is None:
            raise ErrMultisigNoSigners

        on_chain = multisig.signer_addresses
        if signer not in on_chain:
            raise ErrSignerNotOnContract
        remaining = list(on_chain)
        remaining.remove(signer)
        if not same_address_set(remaining, current):
            raise ErrSignersInconsistent

        return current

    async def add_signer_to_draft_wallet(
        self,
        contract: str,
        signer: str,
        expected_signers: Sequence[str],
    ) -> DraftWallet | None:
        """Append *signer* if the draft still holds exactly *expected_signers*.

        Returns:
            The updated draft wallet, or ``None`` when a concurrent addition
            changed the signers first.

        Raises:
            NotFoundError: If the draft wallet was removed or activated meanwhile.
        """
        contract = normalize_address(contract)
        signer = normalize_address(signer)

        draft = await self._draft_wallets.append_signer(contract, signer, expected_signers)
        if draft is None:
            logger.warning("Signer addition lost a race on draft wallet %s", contract)
            self._engine.metrics.record_conflict("draft_wallet")
            return None

        logger.info(
            "Signer %s joined draft wallet %s (%d/%d)",
            signer,
            contract,
            len(draft.signers),
            WALLET_SIGNER_QUORUM,
        )
        return draft

    async def activate_draft_wallet(self, draft_wallet_id: str) -> Wallet:
        """Promote a full draft wallet to the next-round Wallet.

        In one database transaction: delete the draft, create the wallet,
        advance the governance state to the new round, and make every signer
        an admin attached to the wallet.

        Raises:
            NotFoundError: If the draft wallet does not exist.
            BadRequestError: If it lacks signers or its address is already a wallet.
            ConflictError: If another activation claimed the round first.
            GovernanceError: ``wallet-activation-failed`` on a storage failure.
        """
        draft = await self._draft_wallets.get_by_id(draft_wallet_id)
        if draft is None:
            raise ErrDraftWalletNotFound
        if len(draft.signers or []) < WALLET_SIGNER_QUORUM:
            raise ErrDraftWalletNotEnoughSigners
        if await self._wallets.is_address_taken(draft.address):
            raise ErrWalletAddressTaken

        try:
            async with self._engine.datastore.unit_of_work() as session:
                wallet_id = await self._promote_draft_wallet(session, draft_wallet_id)
        except SQLAlchemyError as exc:
            logger.exception("Activation of draft wallet %s failed", draft_wallet_id)
            raise ErrWalletActivationFailed from exc

        wallet = await self._wallets.get_by_id(wallet_id)
        if wallet is None:
            raise ErrWalletNotFound

        self._engine.metrics.record_promotion("wallet")
        logger.info("Activated wallet %s at round %d", wallet.address, wallet.round)
        return wallet

    async def get_current_wallet(self) -> Wallet | None:
        """Return the wallet with the highest round, if any."""
        return await self._wallets.get_current()

    # ------------------------------------------------------------------
    # Draft transactions
    # ------------------------------------------------------------------

    async def validate_new_signer_for_draft_transaction(
        self,
        draft_transaction_id: str,
        signer: str,
    ) -> list[str]:
        """Check that *signer* has a pending on-chain vote mirroring the draft.

        Returns:
            The draft's current sends, the precondition of
            :meth:`add_send_to_draft_transaction`.

        Raises:
            NotFoundError: If the draft transaction or its wallet does not exist.
            BadRequestError: If *signer* already signed.
            ForbiddenError: If no matching vote is on the multisig contract.
            OracleError: If the oracle is unavailable.
        """
        signer = normalize_address(signer)

        draft = await self._draft_transactions.get_by_id(draft_transaction_id)
        if draft is None:
            raise ErrDraftTransactionNotFound
        sends = list(draft.sends or [])
        if signer in sends:
            raise ErrDraftTransactionSignerPresent

        wallet = await self._wallets.get_by_id(draft.wallet_id)
        if wallet is None:
            raise ErrWalletNotFound

        multisig = await self._engine.oracle.get_multisig_contract(wallet.address)
        matched = any(
            vote.address == signer
            and vote.dest_address == draft.recipient
            and vote.amount == draft.amount
            for vote in multisig.signers or []
        )
        if not matched:
            raise ErrSendNotOnContract

        return sends

    async def add_send_to_draft_transaction(
        self,
        draft_transaction_id: str,
        signer: str,
        expected_sends: Sequence[str],
    ) -> DraftTransaction | None:
        """Record *signer*'s send if the draft still holds exactly *expected_sends*.

        Returns:
            The updated draft transaction, or ``None`` on a lost race.

        Raises:
            NotFoundError: If the draft transaction was removed or executed meanwhile.
        """
        signer = normalize_address(signer)

        draft = await self._draft_transactions.append_send(
            draft_transaction_id, signer, expected_sends
        )
        if draft is None:
            logger.warning(
                "Send addition lost a race on draft transaction %s", draft_transaction_id
            )
            self._engine.metrics.record_conflict("draft_transaction")
            return None

        logger.info(
            "Signer %s signed draft transaction %s (%d/%d)",
            signer,
            draft_transaction_id,
            len(draft.sends),
            TRANSACTION_SEND_QUORUM,
        )
        return draft

    async def validate_execution_of_draft_transaction(
        self,
        draft_transaction_id: str,
        tx_hash: str,
    ) -> None:
        """Check that *tx_hash* is the push that paid out the draft.

        Raises:
            NotFoundError: If the draft transaction or its wallet does not exist.
            BadRequestError: If fewer than three sends were recorded.
            ForbiddenError: If the on-chain push or balance change diverges.
            OracleError: If the oracle is unavailable.
        """
        draft = await self._draft_transactions.get_by_id(draft_transaction_id)
        if draft is None:
            raise ErrDraftTransactionNotFound
        if len(draft.sends or []) < TRANSACTION_SEND_QUORUM:
            raise ErrDraftTransactionNotEnoughSends

        wallet = await self._wallets.get_by_id(draft.wallet_id)
        if wallet is None:
            raise ErrWalletNotFound

        # A push drains the executed votes to zero
        multisig = await self._engine.oracle.get_multisig_contract(wallet.address)
        drained = [
            vote
            for vote in multisig.signers or []
            if vote.dest_address == draft.recipient and vote.amount == 0
        ]
        if len(drained) < TRANSACTION_SEND_QUORUM:
            raise ErrPushNotOnContract

        changes = await self._engine.oracle.get_address_contract_balances(
            draft.recipient, wallet.address, limit=1
        )
        if not changes:
            raise ErrBalanceChangeMissing

        latest = changes[0]
        if (
            latest.hash != tx_hash.strip().lower()
            or latest.contract_type != MULTISIG_CONTRACT_TYPE
            or latest.balance_change != draft.amount
            or not latest.tx_receipt.success
            or latest.tx_receipt.method != PUSH_METHOD
        ):
            raise ErrBalanceChangeInconsistent

    async def execute_draft_transaction(
        self,
        draft_transaction_id: str,
        broadcaster: str,
        tx_hash: str,
    ) -> Transaction:
        """Promote a draft transaction to an immutable Transaction.

        In one database transaction: delete the draft, insert the
        transaction, and append it to its wallet's (and linked proposal's)
        transaction set.

        Raises:
            NotFoundError: If the draft transaction does not exist.
            BadRequestError: If fewer than three sends were recorded.
            GovernanceError: ``transaction-execution-failed`` on a storage failure.
        """
        broadcaster = normalize_address(broadcaster)
        tx_hash = tx_hash.strip().lower()

        draft = await self._draft_transactions.get_by_id(draft_transaction_id)
        if draft is None:
            raise ErrDraftTransactionNotFound
        if len(draft.sends or []) < TRANSACTION_SEND_QUORUM:
            raise ErrDraftTransactionNotEnoughSends

        try:
            async with self._engine.datastore.unit_of_work() as session:
                transaction_id = await self._promote_draft_transaction(
                    session, draft_transaction_id, broadcaster, tx_hash
                )
        except SQLAlchemyError as exc:
            logger.exception("Execution of draft transaction %s failed", draft_transaction_id)
            raise ErrTransactionExecutionFailed from exc

        async with self._engine.datastore.session() as session:
            transaction = await session.get(Transaction, transaction_id)
        if transaction is None:
            raise ErrTransactionExecutionFailed

        self._engine.metrics.record_promotion("transaction")
        logger.info(
            "Executed draft transaction %s as %s (push by %s)",
            draft_transaction_id,
            tx_hash,
            broadcaster,
        )
        return transaction

    # ------------------------------------------------------------------
    # Internal: unit-of-work steps
    # ------------------------------------------------------------------

    async def _promote_draft_wallet(self, session: AsyncSession, draft_wallet_id: str) -> str:
        draft = await session.get(DraftWallet, draft_wallet_id)
        if draft is None:
            raise ErrDraftWalletNotFound
        if len(draft.signers or []) < WALLET_SIGNER_QUORUM:
            raise ErrDraftWalletNotEnoughSigners

        state = await session.get(GovernanceState, STATE_ROW_ID)
        if state is None:
            state = GovernanceState(id=STATE_ROW_ID, current_round=0)
            session.add(state)
            await session.flush()
        seen_round = state.current_round

        wallet = Wallet(
            address=draft.address,
            author=draft.author,
            signers=list(draft.signers),
            round=seen_round + 1,
            transactions=[],
        )
        await session.delete(draft)
        await session.flush()

        session.add(wallet)
        await session.flush()

        await self._advance_round(session, seen_round, wallet.id)
        await self._promote_signers(session, wallet)
        return wallet.id

    async def _advance_round(self, session: AsyncSession, seen_round: int, wallet_id: str) -> None:
        """Point the governance state at *wallet_id* if no one moved it since *seen_round*."""
        result = await session.execute(
            update(GovernanceState)
            .where(
                GovernanceState.id == STATE_ROW_ID,
                GovernanceState.current_round == seen_round,
            )
            .values(current_round=seen_round + 1, current_wallet_id=wallet_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:  # type: ignore[union-attr]
            self._engine.metrics.record_conflict("governance_state")
            raise ErrRoundConflict

    async def _promote_signers(self, session: AsyncSession, wallet: Wallet) -> None:
        """Make every wallet signer an admin holding a reference to *wallet*."""
        for signer in wallet.signers:
            result = await session.execute(select(User).where(User.address == signer))
            user = result.scalar_one_or_none()
            if user is None:
                session.add(
                    User(
                        address=signer,
                        name="unnamed",
                        role=Role.ADMIN.value,
                        is_address_verified=False,
                        wallets=[wallet],
                    )
                )
                continue
            user.role = Role.ADMIN.value
            if wallet.id not in user.wallet_ids:
                user.wallets.append(wallet)
        await session.flush()

    async def _promote_draft_transaction(
        self,
        session: AsyncSession,
        draft_transaction_id: str,
        broadcaster: str,
        tx_hash: str,
    ) -> str:
        draft = await session.get(DraftTransaction, draft_transaction_id)
        if draft is None:
            raise ErrDraftTransactionNotFound
        if len(draft.sends or []) < TRANSACTION_SEND_QUORUM:
            raise ErrDraftTransactionNotEnoughSends

        wallet = await session.get(Wallet, draft.wallet_id)
        if wallet is None:
            raise ErrWalletNotFound
        proposal = (
            await session.get(Proposal, draft.proposal_id) if draft.proposal_id else None
        )

        transaction = Transaction(
            title=draft.title,
            category=draft.category,
            category_other_description=draft.category_other_description,
            proposal_id=draft.proposal_id,
            wallet_id=draft.wallet_id,
            recipient=draft.recipient,
            amount=draft.amount,
            sends=list(draft.sends),
            push=broadcaster,
            tx=tx_hash,
            draft_transaction_id=draft.id,
        )
        await session.delete(draft)
        await session.flush()

        session.add(transaction)
        await session.flush()

        if transaction.id not in wallet.transaction_ids:
            wallet.transactions.append(transaction)
        if proposal is not None and transaction.id not in proposal.transaction_ids:
            proposal.transactions.append(transaction)
        await session.flush()
        return transaction.id
