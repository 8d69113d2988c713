"""Generic repository — CRUD and filtered pagination for any governance model.

One implementation serves all entity kinds; subclasses only name their
model, the fields callers may filter/sort on, and the error raised when a
uniqueness constraint is violated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from community_wallet.engine.models.base import Base
from community_wallet.errors.definitions import ErrDuplicateEntity, ErrInvalidFilter

if TYPE_CHECKING:
    from sqlalchemy import Select

    from community_wallet.datastore.client import Datastore
    from community_wallet.errors.governance_errors import GovernanceError

ModelT = TypeVar("ModelT", bound=Base)

DEFAULT_LIMIT = 10
MAX_LIMIT = 1000
DEFAULT_PAGE = 1


@dataclass
class Page(Generic[ModelT]):
    """One page of query results."""

    results: list[ModelT]
    page: int
    limit: int
    total_pages: int
    total_results: int


def parse_sort_by(sort_by: str | None) -> list[tuple[str, bool]]:
    """Parse ``field:desc,other:asc`` into ``[(field, descending), ...]``."""
    if not sort_by:
        return []
    criteria: list[tuple[str, bool]] = []
    for part in sort_by.split(","):
        part = part.strip()
        if not part:
            continue
        field, _, order = part.partition(":")
        criteria.append((field.strip(), order.strip().lower() == "desc"))
    return criteria


class Repository(Generic[ModelT]):
    """Data access layer for one model class."""

    model: ClassVar[type[Base]]
    filterable: ClassVar[frozenset[str]] = frozenset()
    duplicate_error: ClassVar[GovernanceError] = ErrDuplicateEntity

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def create(self, obj: ModelT) -> ModelT:
        """Persist a new entity.

        Raises:
            BadRequestError: If a uniqueness constraint is violated.
        """
        async with self._ds.session() as session:
            session.add(obj)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise self.duplicate_error from exc
            await session.refresh(obj)
        return obj

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        """Find an entity by primary key."""
        async with self._ds.session() as session:
            return await session.get(self.model, entity_id)  # type: ignore[return-value]

    async def find_one(self, **filters: Any) -> ModelT | None:
        """Find the first entity matching all equality *filters*."""
        async with self._ds.session() as session:
            stmt = self._apply_filters(select(self.model), filters).limit(1)
            result = await session.execute(stmt)
            return result.scalars().first()  # type: ignore[return-value]

    async def exists(self, **filters: Any) -> bool:
        return await self.find_one(**filters) is not None

    async def paginate(
        self,
        filters: dict[str, Any] | None = None,
        *,
        sort_by: str | None = None,
        limit: int | None = None,
        page: int | None = None,
    ) -> Page[ModelT]:
        """Query entities with equality filters, sorting and pagination.

        Args:
            filters: Field/value equality filters (``None`` values are ignored).
            sort_by: ``field:(asc|desc)`` criteria, comma separated. Defaults to
                ``created_at`` ascending.
            limit: Page size (default 10, at most 1000).
            page: 1-based page number (default 1).

        Raises:
            BadRequestError: On an unknown filter or sort field.
        """
        filters = {k: v for k, v in (filters or {}).items() if v is not None}
        limit = min(limit, MAX_LIMIT) if limit and limit > 0 else DEFAULT_LIMIT
        page = page if page and page > 0 else DEFAULT_PAGE

        async with self._ds.session() as session:
            count_stmt = self._apply_filters(
                select(func.count()).select_from(self.model), filters
            )
            total = (await session.execute(count_stmt)).scalar_one()

            stmt = self._apply_filters(select(self.model), filters)
            stmt = self._apply_sort(stmt, sort_by)
            stmt = stmt.offset((page - 1) * limit).limit(limit)
            result = await session.execute(stmt)
            results = list(result.scalars().all())

        return Page(
            results=results,  # type: ignore[arg-type]
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
            total_results=total,
        )

    async def update_by_id(self, entity_id: str, patch: dict[str, Any]) -> ModelT | None:
        """Apply *patch* to an entity; returns ``None`` if it does not exist.

        Raises:
            BadRequestError: If the patch violates a uniqueness constraint.
        """
        async with self._ds.session() as session:
            obj = await session.get(self.model, entity_id)
            if obj is None:
                return None
            for key, value in patch.items():
                setattr(obj, key, value)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise self.duplicate_error from exc
            await session.refresh(obj)
            return obj  # type: ignore[return-value]

    async def delete_by_id(self, entity_id: str) -> ModelT | None:
        """Delete an entity; returns the deleted entity or ``None``."""
        async with self._ds.session() as session:
            obj = await session.get(self.model, entity_id)
            if obj is None:
                return None
            await session.delete(obj)
            await session.commit()
            return obj  # type: ignore[return-value]

    async def delete_all(self, **filters: Any) -> int:
        """Bulk delete matching rows. Returns the number of rows removed."""
        async with self._ds.session() as session:
            stmt = delete(self.model)
            for key, value in filters.items():
                stmt = stmt.where(self._column(key) == value)
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0  # type: ignore[union-attr]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _column(self, name: str) -> Any:
        column = self.model.__table__.columns.get(name)  # type: ignore[attr-defined]
        if column is None:
            raise ErrInvalidFilter
        return getattr(self.model, name)

    def _apply_filters(self, stmt: Select, filters: dict[str, Any]) -> Select:
        for key, value in filters.items():
            if self.filterable and key not in self.filterable:
                raise ErrInvalidFilter
            stmt = stmt.where(self._column(key) == value)
        return stmt

    def _apply_sort(self, stmt: Select, sort_by: str | None) -> Select:
        criteria = parse_sort_by(sort_by) or [("created_at", False)]
        for field, descending in criteria:
            column = self._column(field)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        return stmt
