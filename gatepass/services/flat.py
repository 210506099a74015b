from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.exceptions import ConflictError
from gatepass.domain.enums import Role
from gatepass.domain.flat import Flat
from gatepass.repositories.flat import FlatRepository
from gatepass.schemas.flat import FlatCreate
from gatepass.services.auth import Viewer, require_role


class FlatService:
    def __init__(self, session: AsyncSession, viewer: Viewer):
        self._repo = FlatRepository(session)
        self._viewer = viewer

    async def list_flats(self) -> list[Flat]:
        return await self._repo.list_all()

    async def create_flat(self, data: FlatCreate) -> Flat:
        require_role(self._viewer, Role.ADMIN)
        wing = data.wing.value
        if await self._repo.get_by_position(wing, data.floor, data.unit):
            raise ConflictError(f"Flat {Flat.format_number(wing, data.floor, data.unit)} already exists")
        return await self._repo.create(
            wing=wing,
            floor=data.floor,
            unit=data.unit,
            flat_number=data.flat_number or Flat.format_number(wing, data.floor, data.unit),
        )
