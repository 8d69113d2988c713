"""V1 transaction endpoints.

Draft transaction lifecycle (create, sign, execute, delete) and read access
to executed transactions.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from community_wallet.api.dependencies import get_engine, require_manage_transactions
from community_wallet.api.middleware.auth import CallerContext, ensure_admin_of_wallet
from community_wallet.api.v1.schemas import (
    DraftTransactionCreateRequest,
    DraftTransactionResponse,
    ExecuteDraftTransactionRequest,
    TransactionResponse,
    page_response,
)
from community_wallet.engine.client import GovernanceEngine  # noqa: TC001
from community_wallet.engine.database.repository.base import MAX_LIMIT

router = APIRouter(tags=["transaction"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _draft_transaction_resp(d: object) -> dict:
    return DraftTransactionResponse(
        id=d.id,
        title=d.title,
        category=d.category,
        category_other_description=d.category_other_description,
        proposal=d.proposal_id,
        wallet=d.wallet_id,
        recipient=d.recipient,
        amount=d.amount,
        sends=list(d.sends or []),
        version=d.version,
        created_at=d.created_at,
        updated_at=d.updated_at,
    ).model_dump(mode="json")


def _transaction_resp(t: object) -> dict:
    return TransactionResponse(
        id=t.id,
        title=t.title,
        category=t.category,
        category_other_description=t.category_other_description,
        proposal=t.proposal_id,
        wallet=t.wallet_id,
        recipient=t.recipient,
        amount=t.amount,
        sends=list(t.sends or []),
        push=t.push,
        tx=t.tx,
        draft_transaction=t.draft_transaction_id,
        created_at=t.created_at,
        updated_at=t.updated_at,
    ).model_dump(mode="json")


# ---------------------------------------------------------------------------
# Draft transactions
# ---------------------------------------------------------------------------


@router.post("/create-transaction", status_code=201)
async def create_draft_transaction(
    ctx: Annotated[CallerContext, Depends(require_manage_transactions)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    body: DraftTransactionCreateRequest,
) -> dict:
    """Open a payment draft on a wallet the caller signs for."""
    ensure_admin_of_wallet(ctx, body.wallet)
    draft = await engine.governance_service.create_draft_transaction(
        title=body.title,
        category=body.category.value,
        category_other_description=body.category_other_description,
        proposal_id=body.proposal,
        wallet_id=body.wallet,
        recipient=body.recipient,
        amount=body.amount,
    )
    return _draft_transaction_resp(draft)


@router.get("/draft-transactions")
async def list_draft_transactions(
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    title: str | None = None,
    category: str | None = None,
    proposal: str | None = None,
    wallet: str | None = None,
    recipient: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    limit: Annotated[int | None, Query(ge=1, le=MAX_LIMIT)] = None,
    page: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """Query draft transactions."""
    result = await engine.governance_service.query_draft_transactions(
        {
            "title": title,
            "category": category,
            "proposal_id": proposal,
            "wallet_id": wallet,
            "recipient": recipient,
        },
        sort_by=sort_by,
        limit=limit,
        page=page,
    )
    return page_response(result, _draft_transaction_resp)


@router.get("/draft-transactions/{draft_transaction_id}")
async def get_draft_transaction(
    draft_transaction_id: str,
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> dict:
    """Get a draft transaction by ID."""
    draft = await engine.governance_service.get_draft_transaction(draft_transaction_id)
    return _draft_transaction_resp(draft)


@router.post("/draft-transactions/{draft_transaction_id}/sign")
async def sign_draft_transaction(
    draft_transaction_id: str,
    ctx: Annotated[CallerContext, Depends(require_manage_transactions)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> dict:
    """Record the caller's on-chain vote for the draft."""
    existing = await engine.governance_service.get_draft_transaction(draft_transaction_id)
    ensure_admin_of_wallet(ctx, existing.wallet_id)
    draft = await engine.governance_service.sign_draft_transaction(
        draft_transaction_id, ctx.address
    )
    return _draft_transaction_resp(draft)


@router.post("/draft-transactions/{draft_transaction_id}/execute", status_code=201)
async def execute_draft_transaction(
    draft_transaction_id: str,
    ctx: Annotated[CallerContext, Depends(require_manage_transactions)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    body: ExecuteDraftTransactionRequest,
) -> dict:
    """Promote the draft once the caller's push is confirmed on-chain.

    Retrying with the ``tx`` already recorded for this draft returns the
    recorded transaction; a hash recorded for another draft is a conflict.
    """
    existing = await engine.governance_service.find_transaction_by_tx(body.tx)
    if existing is not None:
        ensure_admin_of_wallet(ctx, existing.wallet_id)
    else:
        draft = await engine.governance_service.get_draft_transaction(draft_transaction_id)
        ensure_admin_of_wallet(ctx, draft.wallet_id)
    transaction = await engine.governance_service.execute_draft_transaction(
        draft_transaction_id, ctx.address, body.tx
    )
    return _transaction_resp(transaction)


@router.delete("/draft-transactions/{draft_transaction_id}", status_code=204)
async def delete_draft_transaction(
    draft_transaction_id: str,
    ctx: Annotated[CallerContext, Depends(require_manage_transactions)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> None:
    """Delete a draft transaction on a wallet the caller signs for."""
    existing = await engine.governance_service.get_draft_transaction(draft_transaction_id)
    ensure_admin_of_wallet(ctx, existing.wallet_id)
    await engine.governance_service.delete_draft_transaction(draft_transaction_id)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@router.get("/transactions")
async def list_transactions(
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    title: str | None = None,
    category: str | None = None,
    proposal: str | None = None,
    wallet: str | None = None,
    recipient: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    limit: Annotated[int | None, Query(ge=1, le=MAX_LIMIT)] = None,
    page: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """Query executed transactions."""
    result = await engine.governance_service.query_transactions(
        {
            "title": title,
            "category": category,
            "proposal_id": proposal,
            "wallet_id": wallet,
            "recipient": recipient,
        },
        sort_by=sort_by,
        limit=limit,
        page=page,
    )
    return page_response(result, _transaction_resp)


@router.get("/transactions/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> dict:
    """Get a transaction by ID."""
    transaction = await engine.governance_service.get_transaction(transaction_id)
    return _transaction_resp(transaction)
