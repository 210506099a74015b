"""Shared router dependencies: bearer token → Viewer."""


from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.exceptions import UnauthorizedError
from gatepass.db.base import get_db
from gatepass.services.auth import AuthService, Viewer

_bearer = HTTPBearer(auto_error=False)


def get_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    if not credentials or not credentials.credentials:
        raise UnauthorizedError()
    return credentials.credentials


async def get_viewer(
    token: str = Depends(get_token),
    session: AsyncSession = Depends(get_db),
) -> Viewer:
    return await AuthService(session).resolve(token)
