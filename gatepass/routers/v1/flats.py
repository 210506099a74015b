from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.response import DataResponse
from gatepass.db.base import get_db
from gatepass.routers.deps import get_viewer
from gatepass.schemas.flat import FlatCreate, FlatOut
from gatepass.services.auth import Viewer
from gatepass.services.flat import FlatService

router = APIRouter(prefix="/flats", tags=["Flats"])


@router.get("", response_model=DataResponse[list[FlatOut]])
async def list_flats(
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    """All flats ordered by flat number."""
    flats = await FlatService(session, viewer).list_flats()
    return {"data": [FlatOut.model_validate(f) for f in flats]}


@router.post("", response_model=DataResponse[FlatOut], status_code=status.HTTP_201_CREATED)
async def create_flat(
    body: FlatCreate,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    flat = await FlatService(session, viewer).create_flat(body)
    return {"data": FlatOut.model_validate(flat)}
