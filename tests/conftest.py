"""
Eats Ledger — Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- Fake Playwright DOM helpers live in tests/fakes.py
- Isolated Settings (no .env, no ambient env vars)
- File-backed SQLite storage + FastAPI app over httpx ASGITransport
"""

from __future__ import annotations

from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eats_ledger.api.app import create_app
from eats_ledger.api.storage import create_engine_and_tables
from eats_ledger.config import Settings


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings that ignore .env and ambient environment overrides."""
    return Settings(
        _env_file=None,
        CDP_URL=None,
        PLAYWRIGHT_USER_DATA_DIR=str(tmp_path / "profile"),
        API_BASE_URL="http://api.test",
        DEBUG_SCRAPER=False,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
    )


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture
async def session_factory(test_settings: Settings) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh SQLite database per test, tables created."""
    engine, factory = await create_engine_and_tables(test_settings.DATABASE_URL)
    yield factory
    await engine.dispose()


@pytest.fixture
async def api_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx client talking to the storage API in-process."""
    app = create_app(session_factory=session_factory)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
