"""Visitor repository — the visitor record store.

Every insert and update is staged for the `visitors` change feed.
"""


from sqlalchemy import select

from gatepass.domain.enums import VisitorSource
from gatepass.domain.visitor import Visitor
from gatepass.repositories.base import BaseRepository


class VisitorRepository(BaseRepository[Visitor]):
    model = Visitor
    change_table = "visitors"

    async def find_by_name_and_type(self, name: str, visitor_type: str) -> list[Visitor]:
        """Gate pass holders whose name and type match exactly, most recent first.

        Walk-ins logged at the gate hold no pass and never match.
        """
        result = await self._session.execute(
            select(Visitor)
            .where(
                Visitor.name == name,
                Visitor.type == visitor_type,
                Visitor.source == VisitorSource.PRE_APPROVAL.value,
                Visitor.qr_code.is_not(None),
            )
            .order_by(Visitor.created_at.desc(), Visitor.id.desc())
        )
        return list(result.scalars().all())
