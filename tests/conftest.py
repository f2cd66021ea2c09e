"""Shared test fixtures.

The whole suite runs against the in-process stores, the in-process rate limiter and
the simulated chain executor; settings are read from the environment at import time,
so they are pinned here before anything under src/ is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests")
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["CHAIN_EXECUTOR"] = "simulated"
os.environ["ANTHROPIC_API_KEY"] = ""

from collections.abc import AsyncGenerator, Iterator  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.container import Container, get_container, reset_container  # noqa: E402
from src.main import app  # noqa: E402
from src.pm_common.database import get_db_session  # noqa: E402
from src.pm_gateway.auth.jwt_handler import create_access_token  # noqa: E402


async def _fake_db_session() -> AsyncGenerator[AsyncMock, None]:
    yield AsyncMock()


@pytest.fixture(autouse=True)
def fresh_container() -> Iterator[None]:
    """Every test starts with empty stores and untouched rate limit counters."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    app.dependency_overrides[get_db_session] = _fake_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def container() -> Container:
    return get_container()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = create_access_token("user-1", "0x" + "ab" * 20)
    return {"Authorization": f"Bearer {token}"}
