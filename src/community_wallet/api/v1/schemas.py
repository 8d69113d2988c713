"""V1 API request/response Pydantic schemas.

These are the *API-layer* schemas — thin wrappers that define the HTTP
contract. They deliberately do NOT inherit from SQLAlchemy models; the
endpoint code maps between ORM objects and these schemas.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from decimal import Decimal  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from community_wallet.engine.models.draft_transaction import TransactionCategory
from community_wallet.engine.models.proposal import AcceptanceStatus, FundingStatus
from community_wallet.utils.address import validate_address


def _address(value: str) -> str:
    if not validate_address(value):
        msg = "invalid address"
        raise ValueError(msg)
    return value.strip().lower()


# ---------------------------------------------------------------------------
# Generic / Pagination
# ---------------------------------------------------------------------------


class PageResponse(BaseModel):
    """Paginated query result."""

    results: list[Any]
    page: int
    limit: int
    total_pages: int
    total_results: int


class ErrorResponse(BaseModel):
    """Standard error body ``{"code": "...", "message": "..."}``."""

    code: str
    message: str


# ---------------------------------------------------------------------------
# Draft wallets / wallets
# ---------------------------------------------------------------------------


class DraftWalletCreateRequest(BaseModel):
    """POST /create-draft-wallet — the caller is the author."""

    address: str

    @field_validator("address")
    @classmethod
    def _check_address(cls, v: str) -> str:
        return _address(v)


class AddSignerRequest(BaseModel):
    """POST /add-signer — the caller is the draft wallet's author."""

    signer: str
    contract: str

    @field_validator("signer", "contract")
    @classmethod
    def _check_address(cls, v: str) -> str:
        return _address(v)


class DraftWalletResponse(BaseModel):
    id: str
    address: str
    author: str
    signers: list[str] = Field(default_factory=list)
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WalletResponse(BaseModel):
    id: str
    address: str
    author: str
    signers: list[str] = Field(default_factory=list)
    round: int
    transactions: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


class ProposalCreateRequest(BaseModel):
    """POST /create-proposal — attached to the current wallet."""

    title: str = Field(min_length=1)
    description: str | None = None
    oracle: str | None = None

    @field_validator("oracle")
    @classmethod
    def _check_oracle(cls, v: str | None) -> str | None:
        return _address(v) if v else None


class ProposalEditRequest(BaseModel):
    """PUT /proposals/{id} — only supplied fields change."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    oracle: str | None = None
    acceptance_status: AcceptanceStatus | None = None
    funding_status: FundingStatus | None = None

    @field_validator("oracle")
    @classmethod
    def _check_oracle(cls, v: str | None) -> str | None:
        return _address(v) if v else None

    @model_validator(mode="after")
    def _not_empty(self) -> ProposalEditRequest:
        if not self.model_fields_set:
            msg = "at least one field must be updated"
            raise ValueError(msg)
        return self


class ProposalResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    oracle: str | None = None
    wallet: str
    acceptance_status: str
    funding_status: str
    transactions: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Draft transactions / transactions
# ---------------------------------------------------------------------------


class DraftTransactionCreateRequest(BaseModel):
    """POST /create-transaction — the caller must sign for ``wallet``."""

    title: str = Field(min_length=1)
    category: TransactionCategory
    category_other_description: str | None = None
    proposal: str | None = None
    wallet: str
    recipient: str
    amount: Decimal = Field(gt=0)

    @field_validator("recipient")
    @classmethod
    def _check_recipient(cls, v: str) -> str:
        return _address(v)

    @model_validator(mode="after")
    def _other_needs_description(self) -> DraftTransactionCreateRequest:
        if self.category == TransactionCategory.OTHER and not self.category_other_description:
            msg = "category other requires a description"
            raise ValueError(msg)
        return self


class ExecuteDraftTransactionRequest(BaseModel):
    """POST /draft-transactions/{id}/execute — the caller broadcast the push."""

    tx: str = Field(min_length=1, max_length=128)


class DraftTransactionResponse(BaseModel):
    id: str
    title: str
    category: str
    category_other_description: str | None = None
    proposal: str | None = None
    wallet: str
    recipient: str
    amount: Decimal
    sends: list[str] = Field(default_factory=list)
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TransactionResponse(BaseModel):
    id: str
    title: str
    category: str
    category_other_description: str | None = None
    proposal: str | None = None
    wallet: str
    recipient: str
    amount: Decimal
    sends: list[str] = Field(default_factory=list)
    push: str
    tx: str
    draft_transaction: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def page_response(page: Any, mapper: Any) -> dict:
    """Serialise a repository ``Page`` with *mapper* applied to each result."""
    return PageResponse(
        results=[mapper(r) for r in page.results],
        page=page.page,
        limit=page.limit,
        total_pages=page.total_pages,
        total_results=page.total_results,
    ).model_dump(mode="json")
