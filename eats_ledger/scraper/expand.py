"""
Eats Ledger — Table Expansion Driver

The orders table loads lazily as you scroll. We keep nudging toward the
bottom and re-counting rows until the count stops growing for
EXPAND_STABLE_PASSES polls in a row, or EXPAND_MAX_PASSES is hit.

One flat poll is not proof the table is done: a slow XHR can land after
the 1.5s settle. Three in a row is.
"""

from __future__ import annotations

from typing import Any, NamedTuple

import structlog
from playwright.async_api import Error as PlaywrightError

from eats_ledger.config import (
    EXPAND_FINAL_SETTLE_MS,
    EXPAND_MAX_PASSES,
    EXPAND_SETTLE_MS,
    EXPAND_STABLE_PASSES,
    NUDGE_KEY,
    NUDGE_WHEEL_DELTA_Y,
    ROW_SELECTOR,
)

logger = structlog.get_logger(__name__)


class ExpansionResult(NamedTuple):
    passes: int
    row_count: int
    stopped_by: str  # "stable" | "max_passes"


async def count_rows(page: Any) -> int:
    return await page.locator(ROW_SELECTOR).count()


async def nudge_to_bottom(page: Any) -> None:
    """Press End and scroll the wheel. Either may fail; one is enough."""
    try:
        await page.keyboard.press(NUDGE_KEY)
    except PlaywrightError:
        pass
    try:
        await page.mouse.wheel(0, NUDGE_WHEEL_DELTA_Y)
    except PlaywrightError:
        pass


async def expand_table(
    page: Any,
    max_passes: int = EXPAND_MAX_PASSES,
    stable_threshold: int = EXPAND_STABLE_PASSES,
    settle_ms: int = EXPAND_SETTLE_MS,
    final_settle_ms: int = EXPAND_FINAL_SETTLE_MS,
) -> ExpansionResult:
    """
    Scroll the orders table until its row count stabilizes.

    Args:
        page: Playwright Page showing the orders table.
        max_passes: Hard cap on nudge/poll iterations.
        stable_threshold: Consecutive no-growth polls that end the loop.
        settle_ms: Wait after each nudge before re-counting.
        final_settle_ms: Wait after the loop, before extraction starts.

    Returns:
        ExpansionResult with passes used, final row count, and stop reason.
    """
    previous_count = await count_rows(page)
    stable_passes = 0
    passes = 0
    stopped_by = "max_passes"

    logger.debug("expand_start", rows=previous_count, source="expand")

    for iteration in range(1, max_passes + 1):
        passes = iteration
        await nudge_to_bottom(page)
        await page.wait_for_timeout(settle_ms)

        next_count = await count_rows(page)
        logger.debug(
            "expand_pass",
            iteration=iteration,
            rows_before=previous_count,
            rows_after=next_count,
            source="expand",
        )

        if next_count > previous_count:
            previous_count = next_count
            stable_passes = 0
            continue

        stable_passes += 1
        if stable_passes >= stable_threshold:
            stopped_by = "stable"
            break

    logger.debug(
        "expand_final_settle",
        wait_ms=final_settle_ms,
        passes=passes,
        stopped_by=stopped_by,
        source="expand",
    )
    await page.wait_for_timeout(final_settle_ms)

    logger.info(
        "expand_complete",
        passes=passes,
        rows=previous_count,
        stopped_by=stopped_by,
        source="expand",
    )
    return ExpansionResult(passes=passes, row_count=previous_count, stopped_by=stopped_by)
