"""V1 REST API routes.

Combines all sub-routers under the ``/v1/governance`` prefix.
"""

from fastapi import APIRouter

from community_wallet.api.v1.proposals import router as proposals_router
from community_wallet.api.v1.transactions import router as transactions_router
from community_wallet.api.v1.wallets import router as wallets_router

v1_router = APIRouter(prefix="/v1/governance")

v1_router.include_router(wallets_router)
v1_router.include_router(proposals_router)
v1_router.include_router(transactions_router)

__all__ = ["v1_router"]
