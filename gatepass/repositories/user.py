from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from gatepass.domain.user import AuthSession, Profile, User
from gatepass.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(select(User).where(User.email == email))
        return result.scalars().first()


class ProfileRepository(BaseRepository[Profile]):
    model = Profile

    def _base_query(self):
        return select(Profile).options(selectinload(Profile.user), selectinload(Profile.flat))

    async def list_all(self) -> list[Profile]:
        result = await self._session.execute(self._base_query().order_by(Profile.created_at.asc()))
        return list(result.scalars().all())


class AuthSessionRepository(BaseRepository[AuthSession]):
    model = AuthSession

    async def get_active(self, token: str) -> AuthSession | None:
        """Return the unrevoked, unexpired session for *token*."""
        result = await self._session.execute(
            select(AuthSession).where(
                AuthSession.token == token,
                AuthSession.is_revoked.is_(False),
                AuthSession.expires_at > datetime.now(timezone.utc),
            )
        )
        return result.scalars().first()

    async def revoke(self, token: str) -> bool:
        result = await self._session.execute(
            update(AuthSession).where(AuthSession.token == token).values(is_revoked=True)
        )
        await self._session.flush()
        return result.rowcount > 0
