"""GovernanceError — base exception class and failure categories."""

from __future__ import annotations


class GovernanceError(Exception):
    """Base error for all governance operations.

    Attributes:
        message: Human-readable error description.
        status_code: Suggested HTTP status code.
        code: Machine-readable error code string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "governance-error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class NotFoundError(GovernanceError):
    """A referenced draft or canonical entity does not exist."""

    def __init__(self, message: str, *, code: str = "not-found") -> None:
        super().__init__(message, status_code=404, code=code)


class BadRequestError(GovernanceError):
    """Invalid input, or a uniqueness / quorum precondition was violated."""

    def __init__(self, message: str, *, code: str = "bad-request") -> None:
        super().__init__(message, status_code=400, code=code)


class ForbiddenError(GovernanceError):
    """State diverges from what the chain oracle reports."""

    def __init__(self, message: str, *, code: str = "forbidden") -> None:
        super().__init__(message, status_code=403, code=code)


class ConflictError(GovernanceError):
    """A conditional write matched zero rows because of a concurrent mutation."""

    def __init__(self, message: str, *, code: str = "conflict") -> None:
        super().__init__(message, status_code=409, code=code)
