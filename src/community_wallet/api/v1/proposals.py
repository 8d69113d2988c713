"""V1 proposal endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from community_wallet.api.dependencies import get_engine, require_manage_proposals
from community_wallet.api.middleware.auth import (
    CallerContext,
    ensure_admin_of_current_wallet,
    ensure_admin_of_wallet,
)
from community_wallet.api.v1.schemas import (
    ProposalCreateRequest,
    ProposalEditRequest,
    ProposalResponse,
    page_response,
)
from community_wallet.engine.client import GovernanceEngine  # noqa: TC001
from community_wallet.engine.database.repository.base import MAX_LIMIT

router = APIRouter(tags=["proposal"])


def _proposal_resp(p: object) -> dict:
    return ProposalResponse(
        id=p.id,
        title=p.title,
        description=p.description,
        oracle=p.oracle,
        wallet=p.wallet_id,
        acceptance_status=p.acceptance_status,
        funding_status=p.funding_status,
        transactions=list(p.transaction_ids),
        created_at=p.created_at,
        updated_at=p.updated_at,
    ).model_dump(mode="json")


@router.post("/create-proposal", status_code=201)
async def create_proposal(
    ctx: Annotated[CallerContext, Depends(require_manage_proposals)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    body: ProposalCreateRequest,
) -> dict:
    """Create a pending proposal against the current wallet."""
    await ensure_admin_of_current_wallet(engine, ctx)
    proposal = await engine.governance_service.create_proposal(
        body.title, description=body.description, oracle=body.oracle
    )
    return _proposal_resp(proposal)


@router.get("/proposals")
async def list_proposals(
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    title: str | None = None,
    oracle: str | None = None,
    wallet: str | None = None,
    acceptance_status: Annotated[str | None, Query(alias="acceptanceStatus")] = None,
    funding_status: Annotated[str | None, Query(alias="fundingStatus")] = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    limit: Annotated[int | None, Query(ge=1, le=MAX_LIMIT)] = None,
    page: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """Query proposals."""
    result = await engine.governance_service.query_proposals(
        {
            "title": title,
            "oracle": oracle,
            "wallet_id": wallet,
            "acceptance_status": acceptance_status,
            "funding_status": funding_status,
        },
        sort_by=sort_by,
        limit=limit,
        page=page,
    )
    return page_response(result, _proposal_resp)


@router.get("/proposals/{proposal_id}")
async def get_proposal(
    proposal_id: str,
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> dict:
    """Get a proposal by ID."""
    proposal = await engine.governance_service.get_proposal(proposal_id)
    return _proposal_resp(proposal)


@router.put("/proposals/{proposal_id}")
async def edit_proposal(
    proposal_id: str,
    ctx: Annotated[CallerContext, Depends(require_manage_proposals)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    body: ProposalEditRequest,
) -> dict:
    """Edit a proposal; the caller must sign for the proposal's wallet."""
    existing = await engine.governance_service.get_proposal(proposal_id)
    ensure_admin_of_wallet(ctx, existing.wallet_id)
    patch = body.model_dump(mode="json", exclude_unset=True)
    proposal = await engine.governance_service.edit_proposal(proposal_id, patch)
    return _proposal_resp(proposal)


@router.delete("/proposals/{proposal_id}", status_code=204)
async def delete_proposal(
    proposal_id: str,
    ctx: Annotated[CallerContext, Depends(require_manage_proposals)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> None:
    """Delete a proposal; the caller must sign for the proposal's wallet."""
    existing = await engine.governance_service.get_proposal(proposal_id)
    ensure_admin_of_wallet(ctx, existing.wallet_id)
    await engine.governance_service.delete_proposal(proposal_id)
