"""Shared fixtures: a throwaway SQLite database and an ASGI test client.

Settings are read at import time, so the environment is prepared before any
boetepot module is imported.
"""

import os
import tempfile
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="boetepot-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'boetepot.db'}"
os.environ["SECRET_KEY"] = "test-secret-key-long-enough-for-hs256-signing"
os.environ["ADMIN_PASSWORD"] = "geheim"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("ADMIN_PASSWORD_HASH", None)

import pytest
from httpx import ASGITransport, AsyncClient
from sqlmodel import SQLModel

import boetepot.models  # noqa: F401
from boetepot.core.database import AsyncSessionLocal, engine

ADMIN_PASSWORD = "geheim"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(db):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(db):
    from boetepot.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest.fixture
async def admin_headers(client):
    response = await client.post("/api/v1/auth/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def admin_browser(client):
    """The test client carrying an admin session cookie from the HTML login form."""
    response = await client.post("/admin/login", data={"password": ADMIN_PASSWORD})
    assert response.status_code == 303
    return client
