"""Sign-up, sign-in and session resolution.

A request is made on behalf of a :class:`Viewer`: the signed-in user plus the
role and flat from their profile. A user without a profile is still a valid
viewer; every role-gated capability is simply off for them.
"""


import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.exceptions import ConflictError, ForbiddenError, UnauthorizedError
from gatepass.core.security import hash_password, new_session_token, session_expiry, verify_password
from gatepass.domain.enums import Role
from gatepass.domain.user import AuthSession, User
from gatepass.repositories.user import AuthSessionRepository, ProfileRepository, UserRepository
from gatepass.schemas.auth import SignInRequest, SignUpRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewer:
    user_id: str
    email: str
    role: Role | None = None
    flat_id: str | None = None


def require_role(viewer: Viewer, *roles: Role) -> None:
    if viewer.role not in roles:
        raise ForbiddenError()


class AuthService:
    def __init__(self, session: AsyncSession):
        self._users = UserRepository(session)
        self._profiles = ProfileRepository(session)
        self._sessions = AuthSessionRepository(session)

    async def sign_up(self, data: SignUpRequest) -> User:
        email = data.email.strip().lower()
        if await self._users.get_by_email(email):
            raise ConflictError("Email already registered")

        user = await self._users.create(email=email, password_hash=hash_password(data.password))
        await self._profiles.create(id=user.id, role=Role.FLAT_OWNER.value, flat_id=None)
        logger.info("Signed up user %s", user.id)
        return user

    async def sign_in(self, data: SignInRequest) -> AuthSession:
        user = await self._users.get_by_email(data.email.strip().lower())
        if not user or not verify_password(data.password, user.password_hash):
            raise UnauthorizedError("Incorrect email or password")

        return await self._sessions.create(
            token=new_session_token(), user_id=user.id, expires_at=session_expiry()
        )

    async def sign_out(self, token: str) -> None:
        await self._sessions.revoke(token)

    async def resolve(self, token: str) -> Viewer:
        """Return the viewer behind a bearer token."""
        auth_session = await self._sessions.get_active(token)
        if not auth_session:
            raise UnauthorizedError("Invalid or expired session")

        user = await self._users.get_by_id(auth_session.user_id)
        if not user:
            raise UnauthorizedError("Invalid or expired session")

        profile = await self._profiles.get_by_id(user.id)
        if not profile:
            logger.info("No profile for user %s; role-gated features disabled", user.id)
            return Viewer(user_id=user.id, email=user.email)
        return Viewer(
            user_id=user.id,
            email=user.email,
            role=Role(profile.role),
            flat_id=profile.flat_id,
        )
