"""Tests for the governance facade: proposals, draft CRUD and queries."""

from __future__ import annotations

from decimal import Decimal

import pytest

from community_wallet.errors.definitions import (
    ErrCurrentWalletNotFound,
    ErrDraftTransactionNotFound,
    ErrDraftTransactionWalletTaken,
    ErrDraftWalletNotFound,
    ErrInvalidAddress,
    ErrInvalidAmount,
    ErrInvalidFilter,
    ErrMissingCategoryDescription,
    ErrProposalNotFound,
    ErrProposalOracleTaken,
    ErrUserNotFound,
    ErrWalletNotFound,
)
from community_wallet.errors.governance_errors import BadRequestError
from tests.conftest import AUTHOR, RECIPIENT, WALLET_ADDRESS, addr

ORACLE = addr(0xD0)


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


class TestProposals:
    async def test_requires_current_wallet(self, engine) -> None:
        with pytest.raises(type(ErrCurrentWalletNotFound)) as exc_info:
            await engine.governance_service.create_proposal("Fund the docs")
        assert exc_info.value.code == ErrCurrentWalletNotFound.code

    async def test_create_attaches_current_wallet(self, engine, wallet) -> None:
        proposal = await engine.governance_service.create_proposal(
            "Fund the docs", description="Write them", oracle=ORACLE.upper().replace("0X", "0x")
        )
        assert proposal.wallet_id == wallet.id
        assert proposal.oracle == ORACLE
        assert proposal.acceptance_status == "pending"
        assert proposal.funding_status == "pending"
        assert proposal.transaction_ids == []

    async def test_oracle_is_unique(self, engine, wallet) -> None:
        await engine.governance_service.create_proposal("A", oracle=ORACLE)
        with pytest.raises(type(ErrProposalOracleTaken)):
            await engine.governance_service.create_proposal("B", oracle=ORACLE)

    async def test_edit(self, engine, wallet) -> None:
        svc = engine.governance_service
        proposal = await svc.create_proposal("Fund the docs")
        edited = await svc.edit_proposal(
            proposal.id, {"title": "Fund the website", "acceptance_status": "accepted"}
        )
        assert edited.title == "Fund the website"
        assert edited.acceptance_status == "accepted"
        assert edited.funding_status == "pending"

    async def test_edit_rejects_unknown_fields(self, engine, wallet) -> None:
        proposal = await engine.governance_service.create_proposal("Fund the docs")
        with pytest.raises(type(ErrInvalidFilter)):
            await engine.governance_service.edit_proposal(proposal.id, {"wallet_id": "other"})

    async def test_edit_rejects_unknown_status(self, engine, wallet) -> None:
        proposal = await engine.governance_service.create_proposal("Fund the docs")
        with pytest.raises(BadRequestError) as exc_info:
            await engine.governance_service.edit_proposal(proposal.id, {"funding_status": "maybe"})
        assert exc_info.value.code == "invalid-enum"

    async def test_edit_missing(self, engine) -> None:
        with pytest.raises(type(ErrProposalNotFound)):
            await engine.governance_service.edit_proposal("missing", {"title": "x"})

    async def test_query_and_delete(self, engine, wallet) -> None:
        svc = engine.governance_service
        kept = await svc.create_proposal("Keep")
        dropped = await svc.create_proposal("Drop")
        await svc.edit_proposal(kept.id, {"acceptance_status": "accepted"})

        page = await svc.query_proposals({"acceptance_status": "accepted"})
        assert [p.id for p in page.results] == [kept.id]

        await svc.delete_proposal(dropped.id)
        with pytest.raises(type(ErrProposalNotFound)):
            await svc.get_proposal(dropped.id)
        with pytest.raises(type(ErrProposalNotFound)):
            await svc.delete_proposal(dropped.id)


# ---------------------------------------------------------------------------
# Draft transactions
# ---------------------------------------------------------------------------


def _draft_kwargs(wallet_id: str, **overrides):
    kwargs = {
        "title": "Pay the oracle",
        "category": "payForOracle",
        "wallet_id": wallet_id,
        "recipient": RECIPIENT,
        "amount": "10",
    }
    kwargs.update(overrides)
    return kwargs


class TestCreateDraftTransaction:
    async def test_create(self, engine, wallet) -> None:
        draft = await engine.governance_service.create_draft_transaction(**_draft_kwargs(wallet.id))
        assert draft.amount == Decimal(10)
        assert draft.sends == []
        assert draft.version == 0
        assert draft.category_other_description is None

    async def test_one_draft_per_wallet(self, engine, wallet) -> None:
        svc = engine.governance_service
        await svc.create_draft_transaction(**_draft_kwargs(wallet.id))
        with pytest.raises(type(ErrDraftTransactionWalletTaken)) as exc_info:
            await svc.create_draft_transaction(**_draft_kwargs(wallet.id, title="Second"))
        assert exc_info.value.code == ErrDraftTransactionWalletTaken.code

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "NaN", "Infinity"])
    async def test_invalid_amount(self, engine, wallet, amount) -> None:
        with pytest.raises(type(ErrInvalidAmount)):
            await engine.governance_service.create_draft_transaction(
                **_draft_kwargs(wallet.id, amount=amount)
            )

    async def test_invalid_category(self, engine, wallet) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            await engine.governance_service.create_draft_transaction(
                **_draft_kwargs(wallet.id, category="bribe")
            )
        assert exc_info.value.code == "invalid-enum"

    async def test_other_requires_description(self, engine, wallet) -> None:
        with pytest.raises(type(ErrMissingCategoryDescription)):
            await engine.governance_service.create_draft_transaction(
                **_draft_kwargs(wallet.id, category="other")
            )
        draft = await engine.governance_service.create_draft_transaction(
            **_draft_kwargs(wallet.id, category="other", category_other_description="Stickers")
        )
        assert draft.category_other_description == "Stickers"

    async def test_description_dropped_for_other_categories(self, engine, wallet) -> None:
        draft = await engine.governance_service.create_draft_transaction(
            **_draft_kwargs(wallet.id, category_other_description="ignored")
        )
        assert draft.category_other_description is None

    async def test_invalid_recipient(self, engine, wallet) -> None:
        with pytest.raises(type(ErrInvalidAddress)):
            await engine.governance_service.create_draft_transaction(
                **_draft_kwargs(wallet.id, recipient="0x123")
            )

    async def test_unknown_wallet(self, engine) -> None:
        with pytest.raises(type(ErrWalletNotFound)):
            await engine.governance_service.create_draft_transaction(**_draft_kwargs("missing"))

    async def test_unknown_proposal(self, engine, wallet) -> None:
        with pytest.raises(type(ErrProposalNotFound)):
            await engine.governance_service.create_draft_transaction(
                **_draft_kwargs(wallet.id, proposal_id="missing")
            )

    async def test_delete_and_recreate(self, engine, wallet) -> None:
        svc = engine.governance_service
        draft = await svc.create_draft_transaction(**_draft_kwargs(wallet.id))
        await svc.delete_draft_transaction(draft.id)
        with pytest.raises(type(ErrDraftTransactionNotFound)):
            await svc.delete_draft_transaction(draft.id)
        again = await svc.create_draft_transaction(**_draft_kwargs(wallet.id))
        assert again.id != draft.id

    async def test_query_by_recipient(self, engine, wallet) -> None:
        svc = engine.governance_service
        await svc.create_draft_transaction(**_draft_kwargs(wallet.id))
        page = await svc.query_draft_transactions({"recipient": RECIPIENT.upper().replace("0X", "0x")})
        assert page.total_results == 1
        page = await svc.query_draft_transactions({"recipient": AUTHOR})
        assert page.total_results == 0


# ---------------------------------------------------------------------------
# Draft wallets / wallets / users
# ---------------------------------------------------------------------------


class TestReads:
    async def test_delete_draft_wallet_frees_author(self, engine, fake_oracle) -> None:
        svc = engine.governance_service
        fake_oracle.deploy_multisig(WALLET_ADDRESS, AUTHOR)
        draft = await svc.create_draft_wallet(WALLET_ADDRESS, AUTHOR)

        deleted = await svc.delete_draft_wallet(draft.id)
        assert deleted.id == draft.id
        with pytest.raises(type(ErrDraftWalletNotFound)):
            await svc.get_draft_wallet_by_author(AUTHOR)

        recreated = await svc.create_draft_wallet(WALLET_ADDRESS, AUTHOR)
        assert recreated.id != draft.id

    async def test_query_wallets_sorted_by_round(self, engine, make_wallet) -> None:
        for i in range(3):
            await make_wallet(index=i)
        page = await engine.governance_service.query_wallets(sort_by="round:desc", limit=2)
        assert [w.round for w in page.results] == [3, 2]
        assert page.total_pages == 2

    async def test_get_wallet_missing(self, engine) -> None:
        with pytest.raises(type(ErrWalletNotFound)):
            await engine.governance_service.get_wallet("missing")

    async def test_user_missing(self, engine) -> None:
        with pytest.raises(type(ErrUserNotFound)):
            await engine.governance_service.get_user_by_address(addr(0xFF))
