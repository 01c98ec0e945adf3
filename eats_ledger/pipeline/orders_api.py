"""
Eats Ledger — Orders API Ingest Client

Sends one scrape run's orders to the storage API in a single
POST /orders/bulk. The server dedups on sourceSignature, so re-running a
scrape is safe; this client does no retrying and no partial handling.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx
import structlog
from pydantic import BaseModel, Field

from eats_ledger.config import settings
from eats_ledger.scraper import ScrapedOrder

logger = structlog.get_logger(__name__)

BULK_PATH = "/orders/bulk"


class IngestSummary(BaseModel):
    """Counts returned by POST /orders/bulk."""

    inserted: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)


class IngestError(RuntimeError):
    """Non-2xx response from the bulk endpoint. Fatal for the run."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"API request failed ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class OrdersApiClient:
    """
    Async client for the storage API.

    Usage:
        async with OrdersApiClient() as client:
            summary = await client.submit_orders(orders)
    """

    def __init__(self, base_url: str | None = None, timeout: float = 30.0):
        self._base_url = base_url or settings.API_BASE_URL
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> OrdersApiClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    async def submit_orders(self, orders: Sequence[ScrapedOrder]) -> IngestSummary | None:
        """
        Bulk-insert orders.

        Returns:
            IngestSummary from the server, or None when there was nothing to send.

        Raises:
            IngestError: on any non-2xx response.
        """
        assert self._client is not None, "Client not initialized. Use 'async with'."

        if not orders:
            logger.info("ingest_skipped_empty", source="orders_api")
            return None

        payload = {"orders": [order.to_payload() for order in orders]}
        logger.info(
            "ingest_posting",
            order_count=len(orders),
            base_url=self._base_url,
            source="orders_api",
        )

        response = await self._client.post(BULK_PATH, json=payload)
        if not response.is_success:
            logger.error(
                "ingest_http_error",
                status_code=response.status_code,
                body=response.text,
                source="orders_api",
            )
            raise IngestError(response.status_code, response.text)

        summary = IngestSummary.model_validate(response.json())
        logger.info(
            "ingest_complete",
            inserted=summary.inserted,
            skipped=summary.skipped,
            source="orders_api",
        )
        return summary
