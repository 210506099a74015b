"""Generic async repository with pagination and change-feed staging."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.db.base import Base
from gatepass.db.events import stage_change

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD repository.

    When `change_table` is set, every create and update is staged for the
    realtime change feed and published once the session commits. Deletes are
    never exposed.
    """

    model: type[ModelT]
    change_table: str | None = None

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _base_query(self):
        return select(self.model)

    def _stage(self, change_type: str, instance: ModelT) -> None:
        if self.change_table:
            stage_change(self._session, self.change_table, change_type, instance.id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        result = await self._session.execute(
            self._base_query().where(self.model.id == entity_id)
        )
        return result.scalars().first()

    async def reload(self, entity_id: str) -> ModelT:
        """Re-read a row, overwriting identity-map state and eager relationships."""
        result = await self._session.execute(
            self._base_query()
            .where(self.model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    async def list(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order: str = "desc",
        filters: dict[str, Any] | None = None,
    ) -> tuple[list[ModelT], int]:
        """Return (items, total_count) with pagination and optional column filters."""
        q = self._base_query()

        # Apply simple equality filters
        if filters:
            for col_name, value in filters.items():
                if value is not None and hasattr(self.model, col_name):
                    q = q.where(getattr(self.model, col_name) == value)

        # Count
        count_q = select(func.count()).select_from(q.subquery())
        total = (await self._session.execute(count_q)).scalar_one()

        # Order + paginate; id breaks ties so pages stay stable
        col = getattr(self.model, order_by, None)
        if col is not None:
            tiebreak = self.model.id
            q = q.order_by(
                col.desc() if order == "desc" else col.asc(),
                tiebreak.desc() if order == "desc" else tiebreak.asc(),
            )
        q = q.offset(offset).limit(limit)

        items = (await self._session.execute(q)).scalars().all()
        return list(items), total

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelT:
        instance = self.model(**kwargs)
        self._session.add(instance)
        await self._session.flush()  # populate id
        self._stage("INSERT", instance)
        return await self.reload(instance.id)

    async def update(self, instance: ModelT, **kwargs: Any) -> ModelT:
        kwargs.pop("id", None)
        for field, value in kwargs.items():
            setattr(instance, field, value)
        await self._session.flush()
        self._stage("UPDATE", instance)
        return await self.reload(instance.id)
