"""User model — governance participants identified by address."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from community_wallet.engine.models.associations import user_wallets
from community_wallet.engine.models.base import ADDRESS_LENGTH, Base, IdMixin, TimestampMixin

if TYPE_CHECKING:
    from community_wallet.engine.models.wallet import Wallet


class Role(enum.StrEnum):
    """User roles."""

    USER = "user"
    ADMIN = "admin"


class Right(enum.StrEnum):
    """Rights checked by the API layer."""

    MANAGE_USERS = "manageUsers"
    MANAGE_WALLETS = "manageWallets"
    MANAGE_PROPOSALS = "manageProposals"
    MANAGE_TRANSACTIONS = "manageTransactions"


ROLE_RIGHTS: dict[Role, frozenset[Right]] = {
    Role.USER: frozenset(),
    Role.ADMIN: frozenset(Right),
}


class User(Base, IdMixin, TimestampMixin):
    """A participant; wallet signers are promoted to admin on activation."""

    __tablename__ = "users"

    address: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False, default="unnamed")
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=Role.USER.value)
    is_address_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    wallets: Mapped[list[Wallet]] = relationship(
        "Wallet",
        secondary=user_wallets,
        lazy="selectin",
    )

    @property
    def wallet_ids(self) -> list[str]:
        return [w.id for w in self.wallets]

    def has_right(self, right: Right) -> bool:
        """Check whether the user's role grants *right*."""
        try:
            role = Role(self.role)
        except ValueError:
            return False
        return right in ROLE_RIGHTS[role]

    def __repr__(self) -> str:
        return f"<User address={self.address} role={self.role}>"
