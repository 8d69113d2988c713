"""Idena indexer REST client — contracts, multisig state, balance updates.

Async HTTP client for the read-only indexer API:
- GET /Contract/<address>
- GET /MultisigContract/<address>
- GET /Address/<address>/Contract/<contract>/BalanceUpdates?limit=<n>

Every response wraps its payload in ``{"result": ...}``. Transport errors
and 5xx responses are retried a bounded number of times; any remaining
failure, non-200 status or missing ``result`` raises :class:`OracleError`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from community_wallet.errors.oracle_errors import OracleError
from community_wallet.oracle.models import BalanceChange, ContractInfo, MultisigContract

if TYPE_CHECKING:
    from community_wallet.config.settings import OracleConfig
    from community_wallet.metrics.collector import GovernanceMetrics

logger = logging.getLogger(__name__)


class IdenaOracleClient:
    """Async HTTP client for the Idena indexer API.

    Usage::

        oracle = IdenaOracleClient(config)
        await oracle.connect()
        try:
            contract = await oracle.get_contract("0x...")
        finally:
            await oracle.close()
    """

    def __init__(
        self,
        config: OracleConfig,
        *,
        metrics: GovernanceMetrics | None = None,
    ) -> None:
        """Initialize the oracle client.

        Args:
            config: Oracle configuration (url, timeout, retry policy).
            metrics: Optional metrics sink for request durations and failures.
        """
        self._config = config
        self._metrics = metrics
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self._config.url.rstrip("/"),
            headers={"Accept": "application/json"},
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_contract(self, address: str) -> ContractInfo:
        """Get generic contract metadata.

        Args:
            address: Contract address.

        Returns:
            ContractInfo with the contract's address, type and author.

        Raises:
            OracleError: If the indexer is unreachable or the payload is missing.
        """
        result = await self._get_result("contract", f"/Contract/{address}")
        if not isinstance(result, dict):
            raise OracleError("Error getting contract data: malformed result")
        return ContractInfo.from_dict(result)

    async def get_multisig_contract(self, address: str) -> MultisigContract:
        """Get multisig contract state, including each signer's pending vote.

        Args:
            address: Multisig contract address.

        Returns:
            MultisigContract with vote thresholds and signers (``None`` if empty).

        Raises:
            OracleError: If the indexer is unreachable or the payload is missing.
        """
        result = await self._get_result("multisig_contract", f"/MultisigContract/{address}")
        if not isinstance(result, dict):
            raise OracleError("Error getting multisig contract data: malformed result")
        return MultisigContract.from_dict(result)

    async def get_address_contract_balances(
        self,
        address: str,
        contract: str,
        *,
        limit: int = 1,
    ) -> list[BalanceChange]:
        """Get the balance changes *contract* caused on *address*.

        Args:
            address: Account whose balance changed.
            contract: Contract that caused the change.
            limit: Maximum number of entries.

        Returns:
            BalanceChange entries, most recent first.

        Raises:
            OracleError: If the indexer is unreachable or the payload is missing.
        """
        result = await self._get_result(
            "balance_updates",
            f"/Address/{address}/Contract/{contract}/BalanceUpdates",
            params={"limit": limit},
        )
        if not isinstance(result, list):
            raise OracleError("Error getting balance updates: malformed result")
        return [BalanceChange.from_dict(item) for item in result]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "IdenaOracleClient is not connected — call connect() first"
            raise RuntimeError(msg)
        return self._client

    async def _get_result(
        self,
        endpoint: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """GET *path* with retries and unwrap the ``result`` payload."""
        start = time.monotonic()
        try:
            response = await self._get_with_retries(endpoint, path, params)
            if response.status_code != 200:
                raise OracleError(f"Oracle {endpoint} request failed ({response.status_code})")
            try:
                body = response.json()
            except ValueError as exc:
                raise OracleError(f"Oracle {endpoint} returned invalid JSON") from exc
            result = body.get("result") if isinstance(body, dict) else None
            if result is None:
                raise OracleError(f"Oracle {endpoint} response has no result")
            return result
        except OracleError:
            if self._metrics is not None:
                self._metrics.record_oracle_failure(endpoint)
            raise
        finally:
            if self._metrics is not None:
                self._metrics.observe_oracle_request(endpoint, time.monotonic() - start)

    async def _get_with_retries(
        self,
        endpoint: str,
        path: str,
        params: dict[str, Any] | None,
    ) -> httpx.Response:
        client = self._ensure_connected()
        attempts = self._config.max_retries + 1

        for attempt in range(attempts):
            try:
                response = await client.get(path, params=params)
                if response.status_code < 500:
                    return response
                logger.warning(
                    "Oracle %s returned %d (attempt %d/%d)",
                    endpoint,
                    response.status_code,
                    attempt + 1,
                    attempts,
                )
                if attempt == attempts - 1:
                    return response
            except httpx.HTTPError as exc:
                logger.warning(
                    "Oracle %s error: %s (attempt %d/%d)",
                    endpoint,
                    exc,
                    attempt + 1,
                    attempts,
                )
                if attempt == attempts - 1:
                    raise OracleError(f"Oracle {endpoint} request failed: {exc}") from exc
            await asyncio.sleep(self._config.retry_delay)

        raise OracleError(f"Oracle {endpoint} request failed")  # unreachable
