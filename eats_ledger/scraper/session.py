"""
Eats Ledger — Browser Session Acquisition

Two ways to get a page on the orders export:

- Attach mode (CDP_URL set): connect to a Chrome the user already started
  and logged into. We reuse its first context and first tab, and we never
  close it; a human is supervising that browser.
- Launch mode: start a headed Chrome on a persistent profile directory, so
  the Uber login survives between runs. We own that context and close it.

Failures are not retried. A broken login or profile needs a human.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator

import structlog
from playwright.async_api import async_playwright

from eats_ledger.config import (
    BROWSER_CHANNEL,
    VIEWPORT_HEIGHT,
    VIEWPORT_WIDTH,
    Settings,
)

logger = structlog.get_logger(__name__)


@dataclass
class BrowserSession:
    """A live page plus whether this run owns (and must close) its context."""

    context: Any
    page: Any
    owned: bool


async def attach_session(chromium: Any, cdp_url: str) -> BrowserSession:
    """Connect over CDP and reuse the first existing context and page."""
    browser = await chromium.connect_over_cdp(cdp_url)
    context = browser.contexts[0] if browser.contexts else await browser.new_context()
    page = context.pages[0] if context.pages else await context.new_page()

    logger.info("browser_attached", cdp_url=cdp_url, source="session")
    return BrowserSession(context=context, page=page, owned=False)


async def launch_session(chromium: Any, user_data_dir: str) -> BrowserSession:
    """Launch a headed, persistent Chrome profile."""
    profile_dir = Path(user_data_dir).expanduser().resolve()
    context = await chromium.launch_persistent_context(
        str(profile_dir),
        headless=False,
        channel=BROWSER_CHANNEL,
        viewport={"width": VIEWPORT_WIDTH, "height": VIEWPORT_HEIGHT},
    )
    try:
        page = context.pages[0] if context.pages else await context.new_page()
    except Exception:
        await context.close()
        raise

    logger.info("browser_launched", user_data_dir=str(profile_dir), source="session")
    return BrowserSession(context=context, page=page, owned=True)


async def acquire_session(chromium: Any, settings: Settings) -> BrowserSession:
    """Pick attach or launch mode from settings."""
    if settings.CDP_URL:
        return await attach_session(chromium, settings.CDP_URL)
    return await launch_session(chromium, settings.PLAYWRIGHT_USER_DATA_DIR)


async def release_session(session: BrowserSession) -> None:
    """Close the context only if this run launched it."""
    if not session.owned:
        logger.debug("browser_left_open", source="session")
        return
    await session.context.close()
    logger.info("browser_closed", source="session")


@asynccontextmanager
async def open_browser_session(settings: Settings) -> AsyncIterator[BrowserSession]:
    """
    Start Playwright, acquire a session, and release it on exit.

    Usage:
        async with open_browser_session(settings) as session:
            await session.page.goto(ORDERS_PAGE_URL)
    """
    async with async_playwright() as playwright:
        session = await acquire_session(playwright.chromium, settings)
        try:
            yield session
        finally:
            await release_session(session)
