"""Admin user management: assign roles and flats to profiles."""


import logging

from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.exceptions import NotFoundError
from gatepass.domain.enums import Role
from gatepass.domain.user import Profile
from gatepass.repositories.flat import FlatRepository
from gatepass.repositories.user import ProfileRepository
from gatepass.schemas.profile import ProfileUpdate
from gatepass.services.audit import AuditService
from gatepass.services.auth import Viewer, require_role

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, session: AsyncSession, viewer: Viewer):
        self._repo = ProfileRepository(session)
        self._flats = FlatRepository(session)
        self._audit = AuditService(session)
        self._viewer = viewer

    async def list_profiles(self) -> list[Profile]:
        require_role(self._viewer, Role.ADMIN)
        return await self._repo.list_all()

    async def update_profile(self, profile_id: str, data: ProfileUpdate) -> Profile:
        require_role(self._viewer, Role.ADMIN)
        profile = await self._repo.get_by_id(profile_id)
        if not profile:
            raise NotFoundError("Profile", profile_id)
        if data.flat_id and not await self._flats.get_by_id(data.flat_id):
            raise NotFoundError("Flat", data.flat_id)

        old_value = {"role": profile.role, "flat_id": profile.flat_id}
        updated = await self._repo.update(profile, role=data.role.value, flat_id=data.flat_id)
        await self._audit.record(
            user_id=self._viewer.user_id,
            action="profile.updated",
            entity_type="profile",
            entity_id=profile_id,
            old_value=old_value,
            new_value={"role": updated.role, "flat_id": updated.flat_id},
        )
        logger.info("Profile %s set to role=%s flat=%s", profile_id, updated.role, updated.flat_id)
        return updated
