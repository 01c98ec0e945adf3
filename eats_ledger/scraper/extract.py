"""
Eats Ledger — Row Extraction Engine

Walks the expanded table top to bottom (newest first, as the page renders
it) and yields a ScrapedOrder per valid row. Bad rows are skipped and
debug-logged; they never abort the run.
"""

from __future__ import annotations

from typing import Any, AsyncIterator

import structlog

from eats_ledger.config import ROW_SELECTOR
from eats_ledger.scraper import ScrapedOrder
from eats_ledger.scraper.normalize import build_scraped_order, parse_price
from eats_ledger.scraper.rows import (
    Absent,
    PrivacyTableRowReader,
    RawRow,
    RowReader,
    RowRejection,
    field_text,
)

logger = structlog.get_logger(__name__)


def parse_row(raw: RawRow) -> ScrapedOrder | RowRejection:
    """Validate positional fields and build the order, or say why not."""
    details = {
        "ordered_at_text": field_text(raw.ordered_at),
        "restaurant_name": field_text(raw.restaurant),
        "raw_price_text": field_text(raw.price),
    }
    if isinstance(raw.ordered_at, Absent):
        return RowRejection("missing_ordered_at", details)
    if isinstance(raw.restaurant, Absent):
        return RowRejection("missing_restaurant", details)

    total_price = parse_price(field_text(raw.price))
    if total_price is None:
        return RowRejection("unparseable_price", details)

    return build_scraped_order(
        restaurant_name=raw.restaurant.text,
        total_price=total_price,
        ordered_at_text=raw.ordered_at.text,
    )


async def iter_orders(
    page: Any,
    reader: RowReader | None = None,
) -> AsyncIterator[ScrapedOrder]:
    """
    Yield valid orders in table order.

    The row count is read once; call this only after expand_table() has
    finished settling.
    """
    rows = page.locator(ROW_SELECTOR)
    async for order in _walk_rows(rows, await rows.count(), reader):
        yield order


async def _walk_rows(
    rows: Any,
    row_count: int,
    reader: RowReader | None,
) -> AsyncIterator[ScrapedOrder]:
    reader = reader or PrivacyTableRowReader()
    for index in range(row_count):
        raw = await reader.read(rows.nth(index))
        result = raw if isinstance(raw, RowRejection) else parse_row(raw)

        if isinstance(result, RowRejection):
            logger.debug(
                "extract_row_skipped",
                row=index + 1,
                reason=result.reason,
                **result.details,
                source="extract",
            )
            continue

        yield result


async def extract_orders(
    page: Any,
    reader: RowReader | None = None,
) -> list[ScrapedOrder]:
    """Collect iter_orders() into a list and log a summary."""
    rows = page.locator(ROW_SELECTOR)
    row_count = await rows.count()
    orders = [order async for order in _walk_rows(rows, row_count, reader)]

    logger.debug(
        "extract_summary",
        row_count=row_count,
        parsed_orders=len(orders),
        source="extract",
    )
    return orders
