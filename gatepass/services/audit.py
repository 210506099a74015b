from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.domain.audit import AuditTrail
from gatepass.repositories.audit import AuditRepository


class AuditService:
    def __init__(self, session: AsyncSession):
        self._repo = AuditRepository(session)

    async def record(
        self,
        *,
        user_id: str | None,
        action: str,
        entity_type: str,
        entity_id: str | None = None,
        old_value: Any = None,
        new_value: Any = None,
        description: str | None = None,
    ) -> AuditTrail:
        return await self._repo.create(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_value=old_value,
            new_value=new_value,
            description=description,
        )

    async def history(self, entity_type: str, entity_id: str) -> list[AuditTrail]:
        return await self._repo.list_for_entity(entity_type, entity_id)
