"""User repository."""

from __future__ import annotations

from sqlalchemy import func, select

from community_wallet.engine.database.repository.base import Repository
from community_wallet.engine.models.user import Role, User


class UserRepository(Repository[User]):
    """Data access layer for governance users."""

    model = User
    filterable = frozenset({"address", "name", "role", "is_address_verified"})

    async def get_by_address(self, address: str) -> User | None:
        return await self.find_one(address=address)

    async def count_admins(self) -> int:
        """Count users holding the admin role."""
        async with self._ds.session() as session:
            stmt = select(func.count()).select_from(User).where(User.role == Role.ADMIN.value)
            return (await session.execute(stmt)).scalar_one()
