from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.response import DataResponse
from gatepass.db.base import get_db
from gatepass.domain.user import Profile
from gatepass.routers.deps import get_viewer
from gatepass.schemas.profile import ProfileDetailOut, ProfileUpdate
from gatepass.services.auth import Viewer
from gatepass.services.profile import ProfileService

router = APIRouter(prefix="/profiles", tags=["Profiles"])


def _detail(profile: Profile) -> ProfileDetailOut:
    return ProfileDetailOut(
        id=profile.id,
        role=profile.role,
        flat_id=profile.flat_id,
        email=profile.user.email if profile.user else None,
        flat_number=profile.flat.flat_number if profile.flat else None,
    )


@router.get("", response_model=DataResponse[list[ProfileDetailOut]])
async def list_profiles(
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    """Admin only."""
    profiles = await ProfileService(session, viewer).list_profiles()
    return {"data": [_detail(p) for p in profiles]}


@router.put("/{profile_id}", response_model=DataResponse[ProfileDetailOut])
async def update_profile(
    profile_id: str,
    body: ProfileUpdate,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    """Admin only. Assign a role and (for flat owners) a flat."""
    profile = await ProfileService(session, viewer).update_profile(profile_id, body)
    return {"data": _detail(profile)}
