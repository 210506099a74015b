from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.response import DataResponse
from gatepass.db.base import get_db
from gatepass.routers.deps import get_token, get_viewer
from gatepass.schemas.auth import CurrentUserOut, SessionOut, SignInRequest, SignUpRequest
from gatepass.schemas.profile import ProfileOut
from gatepass.services.auth import AuthService, Viewer

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", response_model=DataResponse[CurrentUserOut], status_code=status.HTTP_201_CREATED)
async def sign_up(body: SignUpRequest, session: AsyncSession = Depends(get_db)):
    """Create an account. New users start as flat owners without a flat."""
    user = await AuthService(session).sign_up(body)
    return {"data": CurrentUserOut(id=user.id, email=user.email)}


@router.post("/signin", response_model=DataResponse[SessionOut])
async def sign_in(body: SignInRequest, session: AsyncSession = Depends(get_db)):
    auth_session = await AuthService(session).sign_in(body)
    return {"data": SessionOut(access_token=auth_session.token, expires_at=auth_session.expires_at)}


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(token: str = Depends(get_token), session: AsyncSession = Depends(get_db)):
    await AuthService(session).sign_out(token)


@router.get("/me", response_model=DataResponse[CurrentUserOut])
async def me(viewer: Viewer = Depends(get_viewer)):
    """Current user and profile; `profile` is null when none exists."""
    profile = (
        ProfileOut(id=viewer.user_id, role=viewer.role, flat_id=viewer.flat_id)
        if viewer.role
        else None
    )
    return {"data": CurrentUserOut(id=viewer.user_id, email=viewer.email, profile=profile)}
