"""Idena chain oracle — read-only indexer API client and payload models."""

from community_wallet.oracle.client import IdenaOracleClient
from community_wallet.oracle.models import (
    MULTISIG_CONTRACT_TYPE,
    PUSH_METHOD,
    BalanceChange,
    ContractInfo,
    MultisigContract,
    MultisigSigner,
    TxReceipt,
)

__all__ = [
    "MULTISIG_CONTRACT_TYPE",
    "PUSH_METHOD",
    "BalanceChange",
    "ContractInfo",
    "IdenaOracleClient",
    "MultisigContract",
    "MultisigSigner",
    "TxReceipt",
]
