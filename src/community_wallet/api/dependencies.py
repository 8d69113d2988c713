"""FastAPI dependency injection helpers.

Provides ``Depends()``-compatible callables for engine access, caller
resolution and the role checks shared by the governance routes.

Usage in a route::

    @router.post("/create-proposal")
    async def create_proposal(
        ctx: Annotated[CallerContext, Depends(require_manage_proposals)],
        engine: Annotated[GovernanceEngine, Depends(get_engine)],
    ) -> ...:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from community_wallet.api.middleware.auth import (
    AUTH_HEADER_ADDRESS,
    CallerContext,
    authenticate_request,
    require_right,
)
from community_wallet.engine.client import GovernanceEngine  # noqa: TC001
from community_wallet.engine.models.user import Right
from community_wallet.errors.definitions import ErrUnauthorized

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def get_engine(request: Request) -> GovernanceEngine:
    """Retrieve the engine from ``app.state``.

    The engine is stored on ``app.state.engine`` during lifespan startup.
    """
    engine: GovernanceEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise ErrUnauthorized
    return engine


# ---------------------------------------------------------------------------
# Caller context
# ---------------------------------------------------------------------------


async def get_caller(
    engine: Annotated[GovernanceEngine, Depends(get_engine)],
    x_auth_address: Annotated[str, Header(alias=AUTH_HEADER_ADDRESS)] = "",
) -> CallerContext:
    """Resolve the caller from the ``x-auth-address`` header."""
    return await authenticate_request(engine, address_header=x_auth_address)


def require_manage_wallets(
    ctx: Annotated[CallerContext, Depends(get_caller)],
) -> CallerContext:
    require_right(ctx, Right.MANAGE_WALLETS)
    return ctx


def require_manage_proposals(
    ctx: Annotated[CallerContext, Depends(get_caller)],
) -> CallerContext:
    require_right(ctx, Right.MANAGE_PROPOSALS)
    return ctx


def require_manage_transactions(
    ctx: Annotated[CallerContext, Depends(get_caller)],
) -> CallerContext:
    require_right(ctx, Right.MANAGE_TRANSACTIONS)
    return ctx
