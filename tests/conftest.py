"""
Pytest configuration and core fixtures.

Settings are read once at import time, so the environment is prepared in
``pytest_configure`` before any ``socialauth`` module is imported.
All fixtures are function-scoped for complete test isolation.
"""

import os
import tempfile
from typing import AsyncGenerator, Callable

import httpx
import pytest
from httpx import ASGITransport, AsyncClient


def pytest_configure(config):
    """Configure pytest with custom settings."""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["DEBUG"] = "true"
    os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="socialauth-logs-"))
    os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    """Build real ``httpx.Response`` objects for mocked provider calls."""

    def _make(
        status_code: int = 200,
        json=None,
        text: str | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        request = httpx.Request("GET", "https://provider.test/")
        if json is not None:
            return httpx.Response(
                status_code, json=json, headers=headers, request=request
            )
        if content is not None:
            return httpx.Response(
                status_code, content=content, headers=headers, request=request
            )
        return httpx.Response(
            status_code, text=text or "", headers=headers, request=request
        )

    return _make


@pytest.fixture
def fresh_store():
    """Provide an empty session store and install it for the app."""
    from socialauth.core.dependencies import get_session_store
    from socialauth.core.services import SessionStore
    from socialauth.main import app

    store = SessionStore(ttl_seconds=3600)
    app.dependency_overrides[get_session_store] = lambda: store
    try:
        yield store
    finally:
        app.dependency_overrides.pop(get_session_store, None)


@pytest.fixture
def app():
    """Create FastAPI application for testing."""
    from socialauth.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
async def client(app, fresh_store) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client bound to a fresh session store.

    The session cookie set by ``SessionMiddleware`` is kept by the client
    between requests, so one client is one browser session.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
