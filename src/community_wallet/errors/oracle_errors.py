"""Chain oracle errors."""

from __future__ import annotations

from community_wallet.errors.governance_errors import GovernanceError


class OracleError(GovernanceError):
    """The Idena indexer API failed or returned a malformed payload."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="oracle-unavailable")
