"""V1 wallet endpoints.

Draft wallet creation and signer collection, activation, and read access to
activated wallets.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from community_wallet.api.dependencies import get_engine, require_manage_wallets
from community_wallet.api.middleware.auth import (
    CallerContext,
    ensure_admin_of_current_wallet_or_sole_admin,
    ensure_author_of_draft_wallet,
)
from community_wallet.api.v1.schemas import (
    AddSignerRequest,
    DraftWalletCreateRequest,
    DraftWalletResponse,
    WalletResponse,
    page_response,
)
from community_wallet.engine.client import GovernanceEngine  # noqa: TC001
from community_wallet.engine.database.repository.base import MAX_LIMIT
from community_wallet.errors.definitions import ErrCurrentWalletNotFound

router = APIRouter(tags=["wallet"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _draft_wallet_resp(d: object) -> dict:
    return DraftWalletResponse(
        id=d.id,
        address=d.address,
        author=d.author,
        signers=list(d.signers or []),
        version=d.version,
        created_at=d.created_at,
        updated_at=d.updated_at,
    ).model_dump(mode="json")


def _wallet_resp(w: object) -> dict:
    return WalletResponse(
        id=w.id,
        address=w.address,
        author=w.author,
        signers=list(w.signers or []),
        round=w.round,
        transactions=list(w.transaction_ids),
        created_at=w.created_at,
        updated_at=w.updated_at,
    ).model_dump(mode="json")


# ---------------------------------------------------------------------------
# Draft wallets
# ---------------------------------------------------------------------------


@router.post("/create-draft-wallet", status_code=201)
async def create_draft_wallet(
    ctx: Annotated[CallerContext, Depends(require_manage_wallets)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    body: DraftWalletCreateRequest,
) -> dict:
    """Register a freshly deployed multisig contract authored by the caller."""
    await ensure_admin_of_current_wallet_or_sole_admin(engine, ctx)
    draft = await engine.governance_service.create_draft_wallet(body.address, ctx.address)
    return _draft_wallet_resp(draft)


@router.post("/add-signer")
async def add_signer(
    ctx: Annotated[CallerContext, Depends(require_manage_wallets)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    body: AddSignerRequest,
) -> dict:
    """Add the next on-chain signer to the caller's draft wallet."""
    await ensure_admin_of_current_wallet_or_sole_admin(engine, ctx)
    draft = await engine.governance_service.add_signer(ctx.address, body.signer, body.contract)
    return _draft_wallet_resp(draft)


@router.get("/draft-wallets")
async def list_draft_wallets(
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    address: str | None = None,
    author: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    limit: Annotated[int | None, Query(ge=1, le=MAX_LIMIT)] = None,
    page: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """Query draft wallets."""
    result = await engine.governance_service.query_draft_wallets(
        {"address": address, "author": author}, sort_by=sort_by, limit=limit, page=page
    )
    return page_response(result, _draft_wallet_resp)


@router.get("/draft-wallets/{draft_wallet_id}")
async def get_draft_wallet(
    draft_wallet_id: str,
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> dict:
    """Get a draft wallet by ID."""
    draft = await engine.governance_service.get_draft_wallet(draft_wallet_id)
    return _draft_wallet_resp(draft)


@router.patch("/draft-wallets/{draft_wallet_id}")
async def activate_draft_wallet(
    draft_wallet_id: str,
    ctx: Annotated[CallerContext, Depends(require_manage_wallets)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> dict:
    """Promote the caller's full draft wallet to the next-round wallet."""
    await ensure_author_of_draft_wallet(engine, ctx, draft_wallet_id)
    wallet = await engine.governance_service.activate_draft_wallet(draft_wallet_id)
    return _wallet_resp(wallet)


@router.delete("/draft-wallets/{draft_wallet_id}", status_code=204)
async def delete_draft_wallet(
    draft_wallet_id: str,
    ctx: Annotated[CallerContext, Depends(require_manage_wallets)],
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> None:
    """Delete the caller's draft wallet."""
    await ensure_author_of_draft_wallet(engine, ctx, draft_wallet_id)
    await engine.governance_service.delete_draft_wallet(draft_wallet_id)


# ---------------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------------


@router.get("/wallets")
async def list_wallets(
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    address: str | None = None,
    author: str | None = None,
    round: int | None = None,  # noqa: A002
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    limit: Annotated[int | None, Query(ge=1, le=MAX_LIMIT)] = None,
    page: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """Query activated wallets."""
    result = await engine.governance_service.query_wallets(
        {"address": address, "author": author, "round": round},
        sort_by=sort_by,
        limit=limit,
        page=page,
    )
    return page_response(result, _wallet_resp)


@router.get("/wallets/current")
async def get_current_wallet(
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> dict:
    """Get the wallet with the highest round."""
    wallet = await engine.governance_service.get_current_wallet()
    if wallet is None:
        raise ErrCurrentWalletNotFound
    return _wallet_resp(wallet)


@router.get("/wallets/{wallet_id}")
async def get_wallet(
    wallet_id: str,
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
) -> dict:
    """Get a wallet by ID."""
    wallet = await engine.governance_service.get_wallet(wallet_id)
    return _wallet_resp(wallet)
