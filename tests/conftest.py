"""Shared test fixtures for the governance test suite."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from community_wallet.config.settings import AppConfig, DatabaseConfig, DatabaseEngine
from community_wallet.engine.client import GovernanceEngine
from community_wallet.errors.oracle_errors import OracleError
from community_wallet.metrics.collector import GovernanceMetrics
from community_wallet.oracle.models import (
    MULTISIG_CONTRACT_TYPE,
    PUSH_METHOD,
    BalanceChange,
    ContractInfo,
    MultisigContract,
    MultisigSigner,
    TxReceipt,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from community_wallet.engine.models.wallet import Wallet


def addr(n: int) -> str:
    """Deterministic lowercase test address."""
    return f"0x{n:040x}"


WALLET_ADDRESS = addr(0xA0)
AUTHOR = addr(0xA1)
SIGNERS = [addr(0xB0 + i) for i in range(5)]
RECIPIENT = addr(0xC0)
TX_HASH = "0x" + "ab" * 32


# ---------------------------------------------------------------------------
# Fake oracle
# ---------------------------------------------------------------------------


class FakeOracle:
    """In-process stand-in for the Idena indexer with mutable chain state."""

    def __init__(self) -> None:
        self.contracts: dict[str, ContractInfo] = {}
        self.multisigs: dict[str, MultisigContract] = {}
        self.balances: dict[tuple[str, str], list[BalanceChange]] = {}
        self.is_connected = True
        self.calls: list[tuple[str, str]] = []

    # -- oracle interface --------------------------------------------------

    async def get_contract(self, address: str) -> ContractInfo:
        self.calls.append(("contract", address))
        if address not in self.contracts:
            raise OracleError("Error getting contract data")
        return self.contracts[address]

    async def get_multisig_contract(self, address: str) -> MultisigContract:
        self.calls.append(("multisig_contract", address))
        if address not in self.multisigs:
            raise OracleError("Error getting multisig contract data")
        return self.multisigs[address]

    async def get_address_contract_balances(
        self, address: str, contract: str, *, limit: int = 1
    ) -> list[BalanceChange]:
        self.calls.append(("balance_updates", address))
        return list(self.balances.get((address, contract), []))[:limit]

    async def close(self) -> None:
        self.is_connected = False

    # -- chain state helpers -----------------------------------------------

    def deploy_multisig(
        self,
        address: str,
        author: str,
        *,
        min_votes: int = 3,
        max_votes: int = 5,
        type_: str = MULTISIG_CONTRACT_TYPE,
    ) -> None:
        self.contracts[address] = ContractInfo(address=address, type=type_, author=author)
        self.multisigs[address] = MultisigContract(min_votes=min_votes, max_votes=max_votes)

    def set_signers(self, address: str, signers: list[str]) -> None:
        ms = self.multisigs[address]
        self.multisigs[address] = replace(
            ms, signers=[MultisigSigner(address=s) for s in signers] or None
        )

    def vote(self, contract: str, signer: str, dest: str, amount: Decimal) -> None:
        ms = self.multisigs[contract]
        self.multisigs[contract] = replace(
            ms,
            signers=[
                MultisigSigner(address=s.address, dest_address=dest, amount=amount)
                if s.address == signer
                else s
                for s in ms.signers or []
            ],
        )

    def push(self, contract: str, recipient: str, amount: Decimal, tx_hash: str) -> None:
        """Drain the votes for *recipient* and record the payout."""
        ms = self.multisigs[contract]
        self.multisigs[contract] = replace(
            ms,
            signers=[
                replace(s, amount=Decimal(0)) if s.dest_address == recipient else s
                for s in ms.signers or []
            ],
        )
        change = BalanceChange(
            hash=tx_hash,
            contract_type=MULTISIG_CONTRACT_TYPE,
            balance_change=amount,
            tx_receipt=TxReceipt(success=True, method=PUSH_METHOD),
        )
        self.balances.setdefault((recipient, contract), []).insert(0, change)


# ---------------------------------------------------------------------------
# Config / engine
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig backed by in-memory SQLite."""
    return AppConfig(
        debug=True,
        db=DatabaseConfig(
            engine=DatabaseEngine.SQLITE,
            dsn="sqlite+aiosqlite:///:memory:",
        ),
    )


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
async def engine(app_config: AppConfig, fake_oracle: FakeOracle) -> AsyncIterator[GovernanceEngine]:
    """Provide a fully initialized engine wired to the fake oracle."""
    eng = GovernanceEngine(app_config, oracle=fake_oracle, metrics=GovernanceMetrics())
    await eng.initialize()
    yield eng
    await eng.close()


@pytest.fixture
def make_wallet(
    engine: GovernanceEngine, fake_oracle: FakeOracle
) -> Callable[..., Awaitable[Wallet]]:
    """Return a coroutine that runs the full draft-wallet flow to activation."""

    async def _make(index: int = 0, signers: list[str] | None = None) -> Wallet:
        address = WALLET_ADDRESS if index == 0 else addr(0x1000 + index)
        author = AUTHOR
        signers = signers or SIGNERS
        svc = engine.governance_service

        fake_oracle.deploy_multisig(address, author)
        draft = await svc.create_draft_wallet(address, author)
        for i, signer in enumerate(signers):
            fake_oracle.set_signers(address, signers[: i + 1])
            await svc.add_signer(author, signer, address)
        return await svc.activate_draft_wallet(draft.id)

    return _make


@pytest.fixture
async def wallet(make_wallet: Callable[..., Awaitable[Wallet]]) -> Wallet:
    """An activated round-1 wallet signed by ``SIGNERS``."""
    return await make_wallet()
