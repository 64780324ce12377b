"""
Shared fixtures: a throwaway SQLite database and an in-process client.
"""
import os
import tempfile
from collections import namedtuple

# Settings are read at import time, so set them before importing the app
_DB_DIR = tempfile.mkdtemp(prefix="letsplay-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'letsplay.db')}"
os.environ["JWT_SECRET_KEY"] = "letsplay-test-secret-key-at-least-32-bytes"

import pytest
from httpx import AsyncClient, ASGITransport

from letsplay.main import app
from letsplay.base_service import Base, engine, AsyncSessionLocal
from letsplay.auth.identity import Role
from letsplay.auth.jwt import create_access_token
from letsplay.auth.models import User

Account = namedtuple("Account", ["id", "email", "headers"])

PASSWORD = "Password123"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    """Fresh schema per test, and a client talking to the app in-process."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    transport = ASGITransport(app=app)
    async with AsyncClient(base_url="http://test", transport=transport) as ac:
        yield ac


@pytest.fixture
def make_account(client):
    """Factory storing a user directly and returning its auth headers."""
    async def _make(username: str, role: Role = Role.USER) -> Account:
        async with AsyncSessionLocal() as session:
            user = User(
                username=username,
                email=f"{username}@example.com",
                hashed_password=User.get_password_hash(PASSWORD),
                role=role.value,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)

        token = create_access_token(user.id, user.email, role)
        return Account(user.id, user.email, {"Authorization": f"Bearer {token.access_token}"})

    return _make


@pytest.fixture
async def alice(make_account):
    return await make_account("alice")


@pytest.fixture
async def bob(make_account):
    return await make_account("bob")


@pytest.fixture
async def admin(make_account):
    return await make_account("admin", Role.ADMIN)
