"""Tests for the v1 governance endpoints against a mocked facade."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from community_wallet.api.app import create_app
from community_wallet.config.settings import AppConfig, DatabaseConfig, DatabaseEngine
from community_wallet.engine.database.repository.base import Page
from community_wallet.errors.definitions import (
    ErrDraftTransactionNotFound,
    ErrDraftWalletConflict,
    ErrTransactionHashTaken,
    ErrUserNotFound,
)
from tests.conftest import AUTHOR, RECIPIENT, SIGNERS, TX_HASH, WALLET_ADDRESS

NOW = datetime(2024, 1, 1, tzinfo=UTC)
PREFIX = "/v1/governance"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _user(address: str, role: str = "admin", wallet_ids: list[str] | None = None) -> SimpleNamespace:
    return SimpleNamespace(address=address, role=role, wallet_ids=wallet_ids or [])


def _draft_wallet(**kw) -> SimpleNamespace:
    defaults = {
        "id": "dw1",
        "address": WALLET_ADDRESS,
        "author": AUTHOR,
        "signers": [],
        "version": 0,
        "created_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(kw)
    return SimpleNamespace(**defaults)


def _wallet(**kw) -> SimpleNamespace:
    defaults = {
        "id": "w1",
        "address": WALLET_ADDRESS,
        "author": AUTHOR,
        "signers": SIGNERS,
        "round": 1,
        "transaction_ids": [],
        "created_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(kw)
    return SimpleNamespace(**defaults)


def _proposal(**kw) -> SimpleNamespace:
    defaults = {
        "id": "p1",
        "title": "Fund the docs",
        "description": None,
        "oracle": None,
        "wallet_id": "w1",
        "acceptance_status": "pending",
        "funding_status": "pending",
        "transaction_ids": [],
        "created_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(kw)
    return SimpleNamespace(**defaults)


def _draft_transaction(**kw) -> SimpleNamespace:
    defaults = {
        "id": "dt1",
        "title": "Pay the oracle",
        "category": "payForOracle",
        "category_other_description": None,
        "proposal_id": None,
        "wallet_id": "w1",
        "recipient": RECIPIENT,
        "amount": Decimal(10),
        "sends": [],
        "version": 0,
        "created_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(kw)
    return SimpleNamespace(**defaults)


def _transaction(**kw) -> SimpleNamespace:
    defaults = {
        "id": "t1",
        "title": "Pay the oracle",
        "category": "payForOracle",
        "category_other_description": None,
        "proposal_id": None,
        "wallet_id": "w1",
        "recipient": RECIPIENT,
        "amount": Decimal(10),
        "sends": SIGNERS[:3],
        "push": SIGNERS[0],
        "tx": TX_HASH,
        "draft_transaction_id": "dt1",
        "created_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(kw)
    return SimpleNamespace(**defaults)


@pytest.fixture
def service() -> AsyncMock:
    svc = AsyncMock()
    svc.get_user_by_address.return_value = _user(SIGNERS[0], wallet_ids=["w1"])
    svc.get_current_wallet.return_value = _wallet()
    return svc


@pytest.fixture
def client(service: AsyncMock) -> TestClient:
    config = AppConfig(
        db=DatabaseConfig(engine=DatabaseEngine.SQLITE, dsn="sqlite+aiosqlite:///:memory:")
    )
    app = create_app(config=config)
    app.state.engine = SimpleNamespace(governance_service=service)
    return TestClient(app)


def _auth(address: str = SIGNERS[0]) -> dict[str, str]:
    return {"x-auth-address": address}


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class TestAuth:
    def test_missing_header(self, client: TestClient) -> None:
        resp = client.post(f"{PREFIX}/create-proposal", json={"title": "x"})
        assert resp.status_code == 401
        assert resp.json() == {"code": "unauthorized", "message": "please authenticate"}

    def test_unknown_user(self, client: TestClient, service: AsyncMock) -> None:
        service.get_user_by_address.side_effect = ErrUserNotFound
        resp = client.post(f"{PREFIX}/create-proposal", json={"title": "x"}, headers=_auth())
        assert resp.status_code == 401

    def test_plain_user_lacks_rights(self, client: TestClient, service: AsyncMock) -> None:
        service.get_user_by_address.return_value = _user(SIGNERS[0], role="user")
        resp = client.post(f"{PREFIX}/create-proposal", json={"title": "x"}, headers=_auth())
        assert resp.status_code == 403
        assert resp.json()["code"] == "insufficient-rights"

    def test_reads_are_public(self, client: TestClient, service: AsyncMock) -> None:
        service.get_wallet.return_value = _wallet()
        resp = client.get(f"{PREFIX}/wallets/w1")
        assert resp.status_code == 200
        assert resp.json()["round"] == 1


# ---------------------------------------------------------------------------
# Draft wallets / wallets
# ---------------------------------------------------------------------------


class TestWalletEndpoints:
    def test_create_draft_wallet_uses_caller_as_author(self, client: TestClient, service: AsyncMock) -> None:
        service.create_draft_wallet.return_value = _draft_wallet(author=SIGNERS[0])
        resp = client.post(
            f"{PREFIX}/create-draft-wallet",
            json={"address": WALLET_ADDRESS.upper().replace("0X", "0x")},
            headers=_auth(),
        )
        assert resp.status_code == 201
        service.create_draft_wallet.assert_awaited_once_with(WALLET_ADDRESS, SIGNERS[0])
        assert resp.json()["author"] == SIGNERS[0]

    def test_create_draft_wallet_invalid_address(self, client: TestClient) -> None:
        resp = client.post(f"{PREFIX}/create-draft-wallet", json={"address": "0x12"}, headers=_auth())
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation-error"
        assert resp.json()["message"].startswith("address")

    def test_create_draft_wallet_requires_current_wallet_admin(
        self, client: TestClient, service: AsyncMock
    ) -> None:
        service.get_user_by_address.return_value = _user(SIGNERS[0], wallet_ids=["old"])
        resp = client.post(f"{PREFIX}/create-draft-wallet", json={"address": WALLET_ADDRESS}, headers=_auth())
        assert resp.status_code == 401
        assert resp.json()["code"] == "not-current-wallet-admin"

    def test_add_signer_conflict(self, client: TestClient, service: AsyncMock) -> None:
        service.add_signer.side_effect = ErrDraftWalletConflict
        resp = client.post(
            f"{PREFIX}/add-signer",
            json={"signer": SIGNERS[1], "contract": WALLET_ADDRESS},
            headers=_auth(),
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "draft-wallet-conflict"

    def test_list_draft_wallets(self, client: TestClient, service: AsyncMock) -> None:
        service.query_draft_wallets.return_value = Page(
            results=[_draft_wallet()], page=1, limit=10, total_pages=1, total_results=1
        )
        resp = client.get(f"{PREFIX}/draft-wallets", params={"author": AUTHOR, "sortBy": "address:desc"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_results"] == 1
        assert body["results"][0]["id"] == "dw1"
        service.query_draft_wallets.assert_awaited_once_with(
            {"address": None, "author": AUTHOR}, sort_by="address:desc", limit=None, page=None
        )

    @pytest.mark.parametrize("path", ["draft-wallets", "wallets", "proposals", "draft-transactions", "transactions"])
    def test_list_limit_above_maximum(self, client: TestClient, service: AsyncMock, path: str) -> None:
        resp = client.get(f"{PREFIX}/{path}", params={"limit": 1001})
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation-error"
        assert "limit" in resp.json()["message"]

    def test_activate_requires_author(self, client: TestClient, service: AsyncMock) -> None:
        service.get_draft_wallet.return_value = _draft_wallet(author=AUTHOR)
        resp = client.patch(f"{PREFIX}/draft-wallets/dw1", headers=_auth())
        assert resp.status_code == 401
        assert resp.json()["code"] == "not-draft-wallet-author"
        service.activate_draft_wallet.assert_not_awaited()

    def test_activate(self, client: TestClient, service: AsyncMock) -> None:
        service.get_draft_wallet.return_value = _draft_wallet(author=SIGNERS[0])
        service.activate_draft_wallet.return_value = _wallet(round=2)
        resp = client.patch(f"{PREFIX}/draft-wallets/dw1", headers=_auth())
        assert resp.status_code == 200
        assert resp.json()["round"] == 2

    def test_current_wallet_missing(self, client: TestClient, service: AsyncMock) -> None:
        service.get_current_wallet.return_value = None
        resp = client.get(f"{PREFIX}/wallets/current")
        assert resp.status_code == 404
        assert resp.json()["code"] == "current-wallet-not-found"


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


class TestProposalEndpoints:
    def test_create(self, client: TestClient, service: AsyncMock) -> None:
        service.create_proposal.return_value = _proposal()
        resp = client.post(f"{PREFIX}/create-proposal", json={"title": "Fund the docs"}, headers=_auth())
        assert resp.status_code == 201
        assert resp.json()["wallet"] == "w1"
        service.create_proposal.assert_awaited_once_with("Fund the docs", description=None, oracle=None)

    def test_edit_requires_fields(self, client: TestClient) -> None:
        resp = client.put(f"{PREFIX}/proposals/p1", json={}, headers=_auth())
        assert resp.status_code == 422

    def test_edit_passes_only_supplied_fields(self, client: TestClient, service: AsyncMock) -> None:
        service.get_proposal.return_value = _proposal()
        service.edit_proposal.return_value = _proposal(acceptance_status="accepted")
        resp = client.put(
            f"{PREFIX}/proposals/p1", json={"acceptance_status": "accepted"}, headers=_auth()
        )
        assert resp.status_code == 200
        service.edit_proposal.assert_awaited_once_with("p1", {"acceptance_status": "accepted"})

    def test_edit_other_wallet_rejected(self, client: TestClient, service: AsyncMock) -> None:
        service.get_proposal.return_value = _proposal(wallet_id="w0")
        resp = client.put(f"{PREFIX}/proposals/p1", json={"title": "x"}, headers=_auth())
        assert resp.status_code == 401
        assert resp.json()["code"] == "not-wallet-admin"

    def test_list_aliases(self, client: TestClient, service: AsyncMock) -> None:
        service.query_proposals.return_value = Page(
            results=[], page=1, limit=10, total_pages=0, total_results=0
        )
        resp = client.get(f"{PREFIX}/proposals", params={"acceptanceStatus": "accepted", "wallet": "w1"})
        assert resp.status_code == 200
        filters = service.query_proposals.call_args.args[0]
        assert filters["acceptance_status"] == "accepted"
        assert filters["wallet_id"] == "w1"

    def test_delete(self, client: TestClient, service: AsyncMock) -> None:
        service.get_proposal.return_value = _proposal()
        resp = client.delete(f"{PREFIX}/proposals/p1", headers=_auth())
        assert resp.status_code == 204
        service.delete_proposal.assert_awaited_once_with("p1")


# ---------------------------------------------------------------------------
# Draft transactions / transactions
# ---------------------------------------------------------------------------


class TestTransactionEndpoints:
    def test_create(self, client: TestClient, service: AsyncMock) -> None:
        service.create_draft_transaction.return_value = _draft_transaction()
        resp = client.post(
            f"{PREFIX}/create-transaction",
            json={
                "title": "Pay the oracle",
                "category": "payForOracle",
                "wallet": "w1",
                "recipient": RECIPIENT,
                "amount": "10",
            },
            headers=_auth(),
        )
        assert resp.status_code == 201
        assert Decimal(resp.json()["amount"]) == Decimal(10)
        kwargs = service.create_draft_transaction.call_args.kwargs
        assert kwargs["wallet_id"] == "w1"
        assert kwargs["category"] == "payForOracle"

    @pytest.mark.parametrize(
        "body",
        [
            {"category": "payForOracle", "amount": "0"},
            {"category": "bribe", "amount": "1"},
            {"category": "other", "amount": "1"},
        ],
    )
    def test_create_validation(self, client: TestClient, body: dict) -> None:
        payload = {"title": "t", "wallet": "w1", "recipient": RECIPIENT, **body}
        resp = client.post(f"{PREFIX}/create-transaction", json=payload, headers=_auth())
        assert resp.status_code == 422

    def test_create_on_foreign_wallet(self, client: TestClient) -> None:
        resp = client.post(
            f"{PREFIX}/create-transaction",
            json={"title": "t", "category": "payForOracle", "wallet": "w0", "recipient": RECIPIENT, "amount": "1"},
            headers=_auth(),
        )
        assert resp.status_code == 401

    def test_sign_uses_caller(self, client: TestClient, service: AsyncMock) -> None:
        service.get_draft_transaction.return_value = _draft_transaction()
        service.sign_draft_transaction.return_value = _draft_transaction(sends=[SIGNERS[0]], version=1)
        resp = client.post(f"{PREFIX}/draft-transactions/dt1/sign", headers=_auth())
        assert resp.status_code == 200
        assert resp.json()["sends"] == [SIGNERS[0]]
        service.sign_draft_transaction.assert_awaited_once_with("dt1", SIGNERS[0])

    def test_execute(self, client: TestClient, service: AsyncMock) -> None:
        service.find_transaction_by_tx.return_value = None
        service.get_draft_transaction.return_value = _draft_transaction(sends=SIGNERS[:3])
        service.execute_draft_transaction.return_value = _transaction()
        resp = client.post(f"{PREFIX}/draft-transactions/dt1/execute", json={"tx": TX_HASH}, headers=_auth())
        assert resp.status_code == 201
        assert resp.json()["tx"] == TX_HASH
        service.execute_draft_transaction.assert_awaited_once_with("dt1", SIGNERS[0], TX_HASH)

    def test_execute_retry_after_draft_is_gone(self, client: TestClient, service: AsyncMock) -> None:
        service.find_transaction_by_tx.return_value = _transaction()
        service.get_draft_transaction.side_effect = ErrDraftTransactionNotFound
        service.execute_draft_transaction.return_value = _transaction()
        resp = client.post(f"{PREFIX}/draft-transactions/dt1/execute", json={"tx": TX_HASH}, headers=_auth())
        assert resp.status_code == 201
        assert resp.json()["id"] == "t1"
        assert resp.json()["draft_transaction"] == "dt1"
        service.get_draft_transaction.assert_not_awaited()

    def test_execute_hash_recorded_for_another_draft(self, client: TestClient, service: AsyncMock) -> None:
        service.find_transaction_by_tx.return_value = _transaction(draft_transaction_id="dt0")
        service.execute_draft_transaction.side_effect = ErrTransactionHashTaken
        resp = client.post(f"{PREFIX}/draft-transactions/dt1/execute", json={"tx": TX_HASH}, headers=_auth())
        assert resp.status_code == 409
        assert resp.json()["code"] == "transaction-hash-taken"

    def test_execute_retry_requires_wallet_admin(self, client: TestClient, service: AsyncMock) -> None:
        service.find_transaction_by_tx.return_value = _transaction(wallet_id="w0")
        resp = client.post(f"{PREFIX}/draft-transactions/dt1/execute", json={"tx": TX_HASH}, headers=_auth())
        assert resp.status_code == 401
        service.execute_draft_transaction.assert_not_awaited()

    def test_delete(self, client: TestClient, service: AsyncMock) -> None:
        service.get_draft_transaction.return_value = _draft_transaction()
        resp = client.delete(f"{PREFIX}/draft-transactions/dt1", headers=_auth())
        assert resp.status_code == 204

    def test_get_transaction(self, client: TestClient, service: AsyncMock) -> None:
        service.get_transaction.return_value = _transaction()
        resp = client.get(f"{PREFIX}/transactions/t1")
        assert resp.status_code == 200
        body = resp.json()
        assert body["push"] == SIGNERS[0]
        assert body["sends"] == SIGNERS[:3]


# ---------------------------------------------------------------------------
# Base routes
# ---------------------------------------------------------------------------


class TestBaseRoutes:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_metrics_exposes_request_counter(self, client: TestClient) -> None:
        client.get("/health")
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "http_request_total" in resp.text

    def test_ready_reports_components(self, client: TestClient) -> None:
        client.app.state.engine.health_check = AsyncMock(return_value={"datastore": "ok", "oracle": "ok"})
        resp = client.get("/health/ready")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "components": {"datastore": "ok", "oracle": "ok"}}

    def test_ready_degraded_when_oracle_down(self, client: TestClient) -> None:
        client.app.state.engine.health_check = AsyncMock(
            return_value={"datastore": "ok", "oracle": "disconnected"}
        )
        resp = client.get("/health/ready")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"
