from sqlalchemy import select

from gatepass.domain.audit import AuditTrail
from gatepass.repositories.base import BaseRepository


class AuditRepository(BaseRepository[AuditTrail]):
    model = AuditTrail

    async def list_for_entity(self, entity_type: str, entity_id: str) -> list[AuditTrail]:
        result = await self._session.execute(
            select(AuditTrail)
            .where(AuditTrail.entity_type == entity_type, AuditTrail.entity_id == entity_id)
            .order_by(AuditTrail.created_at.asc())
        )
        return list(result.scalars().all())
