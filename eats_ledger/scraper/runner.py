"""
Eats Ledger — Scrape Run Orchestrator

One invocation, one pass, strictly sequential:

    acquire session -> open orders page -> wait for table
    -> expand -> extract -> bulk ingest -> release session

Every failure here is fatal and propagates to eats_ledger.main. Re-running
is the recovery path; ingest is idempotent by signature.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from eats_ledger.config import (
    ORDERS_PAGE_URL,
    ROW_SELECTOR,
    TABLE_READY_TIMEOUT_MS,
    TABLE_SELECTOR,
    Settings,
)
from eats_ledger.pipeline.orders_api import IngestSummary, OrdersApiClient
from eats_ledger.scraper.expand import expand_table
from eats_ledger.scraper.extract import extract_orders
from eats_ledger.scraper.rows import PrivacyTableRowReader, RowReader
from eats_ledger.scraper.session import open_browser_session

logger = structlog.get_logger(__name__)


async def wait_for_orders_table(page: Any, timeout_ms: int = TABLE_READY_TIMEOUT_MS) -> None:
    """Block until the table and at least one row exist. Raises on timeout."""
    await page.wait_for_selector(TABLE_SELECTOR, timeout=timeout_ms)
    await page.wait_for_selector(ROW_SELECTOR, timeout=timeout_ms)


class ScrapeRunner:
    """
    Runs one scrape of the orders export and ingests the result.

    Usage:
        runner = ScrapeRunner(settings)
        summary = await runner.run()
    """

    def __init__(
        self,
        settings: Settings,
        reader: RowReader | None = None,
        session_factory: Callable[[Settings], Any] = open_browser_session,
        client_factory: Callable[[str], OrdersApiClient] = OrdersApiClient,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.settings = settings
        self.reader = reader or PrivacyTableRowReader()
        self._session_factory = session_factory
        self._client_factory = client_factory
        self._echo = echo

    async def run(self) -> IngestSummary | None:
        """
        Execute the pipeline.

        Returns:
            The server's inserted/skipped counts, or None if no orders were found.
        """
        self._echo(f"Using API: {self.settings.API_BASE_URL}")

        async with self._session_factory(self.settings) as session:
            if self.settings.CDP_URL:
                self._echo(f"Connected over CDP: {self.settings.CDP_URL}")

            page = session.page
            logger.info("scrape_navigating", url=ORDERS_PAGE_URL, source="runner")
            await page.goto(ORDERS_PAGE_URL, wait_until="domcontentloaded")
            await wait_for_orders_table(page)

            await expand_table(page)
            orders = await extract_orders(page, self.reader)

            if not orders:
                logger.info("scrape_no_orders", source="runner")
                self._echo("No orders detected in privacy table; nothing to scrape.")
                return None

            self._echo(f"Scraped {len(orders)} order(s). Posting to API...")
            async with self._client_factory(self.settings.API_BASE_URL) as client:
                summary = await client.submit_orders(orders)

            if summary is not None:
                self._echo(f"Import completed: {summary.model_dump()}")
            return summary
