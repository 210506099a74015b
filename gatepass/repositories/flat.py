from sqlalchemy import select

from gatepass.domain.flat import Flat
from gatepass.repositories.base import BaseRepository


class FlatRepository(BaseRepository[Flat]):
    model = Flat

    async def list_all(self) -> list[Flat]:
        result = await self._session.execute(
            self._base_query().order_by(Flat.flat_number.asc())
        )
        return list(result.scalars().all())

    async def get_by_position(self, wing: str, floor: int, unit: int) -> Flat | None:
        result = await self._session.execute(
            select(Flat).where(Flat.wing == wing, Flat.floor == floor, Flat.unit == unit)
        )
        return result.scalars().first()
