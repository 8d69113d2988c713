"""Idena indexer data models — contracts, multisig votes, balance changes.

Data classes representing the indexer API ``result`` payloads. Field names
follow the indexer's camelCase JSON; amounts are decimal strings and are
parsed into :class:`~decimal.Decimal` so comparisons are exact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from community_wallet.errors.oracle_errors import OracleError

MULTISIG_CONTRACT_TYPE = "Multisig"
PUSH_METHOD = "push"


def parse_amount(value: Any, *, default: Decimal | None = None) -> Decimal:
    """Parse an indexer amount (decimal string or number) into a Decimal.

    An absent value yields *default* when one is given. Anything else that
    is not a finite decimal raises :class:`OracleError`.
    """
    if value is None and default is not None:
        return default
    msg = f"Oracle returned a malformed amount: {value!r}"
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise OracleError(msg)
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise OracleError(msg) from exc
    if not amount.is_finite():
        raise OracleError(msg)
    return amount


def _lower(value: Any) -> str:
    return str(value).lower() if value else ""


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContractInfo:
    """Generic contract metadata from ``/Contract/{address}``."""

    address: str
    type: str
    author: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContractInfo:
        return cls(
            address=_lower(data.get("address")),
            type=data.get("type", "") or "",
            author=_lower(data.get("author")),
        )


@dataclass(frozen=True)
class MultisigSigner:
    """A signer slot on a multisig contract and its pending vote.

    ``dest_address`` and ``amount`` describe the send the signer voted for;
    after a push drains the votes ``amount`` reads zero.
    """

    address: str
    dest_address: str = ""
    amount: Decimal = Decimal(0)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MultisigSigner:
        return cls(
            address=_lower(data.get("address")),
            dest_address=_lower(data.get("destAddress")),
            amount=parse_amount(data.get("amount"), default=Decimal(0)),
        )


@dataclass(frozen=True)
class MultisigContract:
    """Multisig state from ``/MultisigContract/{address}``.

    ``signers`` is ``None`` when the contract has none yet (freshly deployed).
    """

    min_votes: int
    max_votes: int
    signers: list[MultisigSigner] | None = None

    @property
    def signer_addresses(self) -> list[str]:
        return [s.address for s in self.signers or []]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MultisigContract:
        raw_signers = data.get("signers")
        signers = (
            [MultisigSigner.from_dict(s) for s in raw_signers] if raw_signers else None
        )
        return cls(
            min_votes=int(data.get("minVotes", 0) or 0),
            max_votes=int(data.get("maxVotes", 0) or 0),
            signers=signers,
        )


# ---------------------------------------------------------------------------
# Balance changes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TxReceipt:
    """Receipt of the contract call that caused a balance change."""

    success: bool = False
    method: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TxReceipt:
        if not data:
            return cls()
        return cls(success=bool(data.get("success", False)), method=data.get("method", "") or "")


@dataclass(frozen=True)
class BalanceChange:
    """One entry of ``/Address/{address}/Contract/{contract}/BalanceUpdates``."""

    hash: str
    contract_type: str
    balance_change: Decimal
    tx_receipt: TxReceipt = field(default_factory=TxReceipt)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BalanceChange:
        return cls(
            hash=_lower(data.get("hash")),
            contract_type=data.get("contractType", "") or "",
            balance_change=parse_amount(data.get("balanceChange")),
            tx_receipt=TxReceipt.from_dict(data.get("txReceipt")),
        )
