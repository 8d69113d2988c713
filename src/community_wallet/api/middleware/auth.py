"""Caller identification and governance authorization guards.

Session issuance lives in the upstream authentication gateway, which
forwards the authenticated account address in ``x-auth-address``. This
module resolves that address to a stored user and provides the role and
wallet-membership checks the governance routes apply:

- ``require_right`` — the caller's role grants a right
- ``ensure_admin_of_wallet`` — the caller signs for a given wallet
- ``ensure_admin_of_current_wallet`` — the caller signs for the current wallet
- ``ensure_admin_of_current_wallet_or_sole_admin`` — as above, or no wallet
  exists yet and the caller is the only admin (bootstrap)
- ``ensure_author_of_draft_wallet`` — the caller deployed the draft wallet
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from community_wallet.engine.models.user import ROLE_RIGHTS, Right, Role
from community_wallet.errors.definitions import (
    ErrCurrentWalletNotFound,
    ErrInsufficientRights,
    ErrNoCurrentWalletNorSoleAdmin,
    ErrNotCurrentWalletAdmin,
    ErrNotDraftWalletAuthor,
    ErrNotWalletAdmin,
    ErrUnauthorized,
)
from community_wallet.errors.governance_errors import NotFoundError
from community_wallet.utils.address import validate_address

if TYPE_CHECKING:
    from community_wallet.engine.client import GovernanceEngine

AUTH_HEADER_ADDRESS = "x-auth-address"


# ---------------------------------------------------------------------------
# CallerContext, passed to route handlers after authentication
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller attached to the request."""

    address: str
    role: str = Role.USER.value
    wallet_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def has_right(self, right: Right) -> bool:
        try:
            return right in ROLE_RIGHTS[Role(self.role)]
        except ValueError:
            return False

    def is_admin_of(self, wallet_id: str) -> bool:
        return wallet_id in self.wallet_ids


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


async def authenticate_request(engine: GovernanceEngine, *, address_header: str = "") -> CallerContext:
    """Resolve the caller from the forwarded address header.

    Raises:
        GovernanceError: 401 if the header is missing, malformed or unknown.
    """
    if not address_header or not validate_address(address_header):
        raise ErrUnauthorized

    try:
        user = await engine.governance_service.get_user_by_address(address_header)
    except NotFoundError as exc:
        raise ErrUnauthorized from exc

    return CallerContext(
        address=user.address,
        role=user.role,
        wallet_ids=frozenset(user.wallet_ids),
    )


# ---------------------------------------------------------------------------
# Authorization guards
# ---------------------------------------------------------------------------


def require_right(ctx: CallerContext, right: Right) -> None:
    """Raise 403 unless the caller's role grants *right*."""
    if not ctx.has_right(right):
        raise ErrInsufficientRights


def ensure_admin_of_wallet(ctx: CallerContext, wallet_id: str) -> None:
    """Raise 401 unless the caller is a signer of *wallet_id*."""
    if not ctx.is_admin_of(wallet_id):
        raise ErrNotWalletAdmin


async def ensure_admin_of_current_wallet(engine: GovernanceEngine, ctx: CallerContext) -> None:
    """Raise unless the caller is a signer of the current wallet.

    Raises:
        NotFoundError: If no wallet has been activated yet.
        GovernanceError: 401 if the caller does not sign for it.
    """
    current = await engine.governance_service.get_current_wallet()
    if current is None:
        raise ErrCurrentWalletNotFound
    if not ctx.is_admin_of(current.id):
        raise ErrNotCurrentWalletAdmin


async def ensure_admin_of_current_wallet_or_sole_admin(
    engine: GovernanceEngine,
    ctx: CallerContext,
) -> None:
    """Like :func:`ensure_admin_of_current_wallet`, but lets the only admin
    through while no wallet exists, so the first wallet can be set up.
    """
    current = await engine.governance_service.get_current_wallet()
    if current is None:
        if ctx.is_admin and await engine.governance_service.count_admins() == 1:
            return
        raise ErrNoCurrentWalletNorSoleAdmin
    if not ctx.is_admin_of(current.id):
        raise ErrNotCurrentWalletAdmin


async def ensure_author_of_draft_wallet(
    engine: GovernanceEngine,
    ctx: CallerContext,
    draft_wallet_id: str,
) -> None:
    """Raise unless the caller deployed the draft wallet (404 if it is absent)."""
    draft = await engine.governance_service.get_draft_wallet(draft_wallet_id)
    if draft.author != ctx.address:
        raise ErrNotDraftWalletAuthor
