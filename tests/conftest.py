import asyncio
import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports settings.
_DB_DIR = tempfile.mkdtemp(prefix="gatepass-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["APP_ENV"] = "test"
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient

import gatepass.domain  # noqa: E402,F401
from gatepass.db.base import Base, async_session_factory, engine
from gatepass.domain.enums import Role
from gatepass.domain.flat import Flat
from gatepass.domain.user import Profile
from gatepass.main import app


async def _create_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _drop_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _schema():
    asyncio.run(_create_schema())
    yield
    asyncio.run(_drop_schema())


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def create_flat(wing: str = "A", floor: int = 1, unit: int = 1) -> str:
    async with async_session_factory() as session:
        flat = Flat(wing=wing, floor=floor, unit=unit, flat_number=Flat.format_number(wing, floor, unit))
        session.add(flat)
        await session.commit()
        return flat.id


async def set_profile(user_id: str, role: Role, flat_id: str | None = None) -> None:
    async with async_session_factory() as session:
        profile = await session.get(Profile, user_id)
        profile.role = role.value
        profile.flat_id = flat_id
        await session.commit()


async def sign_up_and_in(
    client: AsyncClient,
    email: str,
    role: Role = Role.FLAT_OWNER,
    flat_id: str | None = None,
    password: str = "correct-horse",
) -> tuple[str, dict]:
    """Create a user with the given role and return (user_id, auth headers)."""
    resp = await client.post("/api/v1/auth/signup", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["data"]["id"]
    await set_profile(user_id, role, flat_id)

    resp = await client.post("/api/v1/auth/signin", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["accessToken"]
    return user_id, {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def flat_id() -> str:
    return await create_flat("A", 1, 1)


@pytest.fixture
async def owner(client, flat_id):
    return await sign_up_and_in(client, "owner@example.com", Role.FLAT_OWNER, flat_id)


@pytest.fixture
async def guard(client):
    return await sign_up_and_in(client, "guard@example.com", Role.SECURITY)


@pytest.fixture
async def admin(client):
    return await sign_up_and_in(client, "admin@example.com", Role.ADMIN)
