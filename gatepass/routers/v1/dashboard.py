from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.response import DataResponse
from gatepass.db.base import get_db
from gatepass.routers.deps import get_viewer
from gatepass.schemas.dashboard import DashboardOut
from gatepass.services.auth import Viewer
from gatepass.services.visitor import VisitorService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DataResponse[DashboardOut])
async def dashboard(
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    """Role capabilities plus the most recent visible visitors."""
    return {"data": await VisitorService(session, viewer).dashboard()}
