"""
Eats Ledger - Spend Bucketing (weekly / monthly / yearly)

Re-parses each order's ordered_at_text into a calendar date and sums spend
per period. Text that doesn't look like 'Feb 22, 2026, ...' is left out of
the analytics silently; it is still a valid stored order.

Buckets are contiguous: every period from the earliest order through the
later of today and the latest order appears, empty ones included. A
future-dated order stretches the range instead of being clipped.
"""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol

import structlog
from pydantic import BaseModel

from eats_ledger.config import SpendPeriod

logger = structlog.get_logger(__name__)

_TWO_DP = Decimal("0.01")
_ZERO = Decimal("0.00")

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_FULL_MONTHS = (
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
)
_DATE_RE = re.compile(r"\b([A-Za-z]{3,9})\.?\s+(\d{1,2}),\s*(\d{4})\b")


class PricedOrder(Protocol):
    ordered_at_text: str
    total_price: Decimal


class SpendBucket(BaseModel):
    label: str
    start: date
    end: date  # inclusive
    total_spend: Decimal
    order_count: int
    average_spend: Decimal


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(_TWO_DP, rounding=ROUND_HALF_UP)


def _month_number(name: str) -> int | None:
    lowered = name.lower()
    month = _MONTHS.get(lowered[:3])
    if month is None:
        return None
    # 'Feb', 'February' and 'Sept' pass; 'Febxyz' doesn't.
    if len(lowered) == 3 or _FULL_MONTHS[month - 1].startswith(lowered):
        return month
    return None


def parse_order_date(ordered_at_text: str) -> date | None:
    """'Feb 22, 2026, 10:09:13 AM' -> date(2026, 2, 22). None if no match."""
    match = _DATE_RE.search(ordered_at_text or "")
    if match is None:
        return None
    month = _month_number(match.group(1))
    if month is None:
        return None
    try:
        return date(int(match.group(3)), month, int(match.group(2)))
    except ValueError:
        return None


def period_start(day: date, period: SpendPeriod) -> date:
    if period is SpendPeriod.WEEK:
        return day - timedelta(days=day.weekday())
    if period is SpendPeriod.MONTH:
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def next_period_start(start: date, period: SpendPeriod) -> date:
    if period is SpendPeriod.WEEK:
        return start + timedelta(days=7)
    if period is SpendPeriod.MONTH:
        if start.month == 12:
            return date(start.year + 1, 1, 1)
        return date(start.year, start.month + 1, 1)
    return date(start.year + 1, 1, 1)


def period_label(start: date, period: SpendPeriod) -> str:
    if period is SpendPeriod.WEEK:
        iso_year, iso_week, _ = start.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if period is SpendPeriod.MONTH:
        return f"{start.year}-{start.month:02d}"
    return f"{start.year}"


def build_spend_buckets(
    orders: Iterable[PricedOrder],
    period: SpendPeriod,
    today: date | None = None,
) -> list[SpendBucket]:
    """
    Group orders into contiguous spend buckets.

    Args:
        orders: Anything with ordered_at_text and total_price.
        period: WEEK (ISO, Monday start), MONTH or YEAR.
        today: Range end floor; defaults to date.today().

    Returns:
        Buckets oldest first. Empty if no order has a parseable date.
    """
    today = today or date.today()
    totals: dict[date, Decimal] = defaultdict(Decimal)
    counts: dict[date, int] = defaultdict(int)
    dated: list[date] = []
    excluded = 0

    for order in orders:
        day = parse_order_date(order.ordered_at_text)
        if day is None:
            excluded += 1
            continue
        dated.append(day)
        key = period_start(day, period)
        totals[key] += Decimal(str(order.total_price))
        counts[key] += 1

    if not dated:
        logger.debug("spend_buckets_empty", excluded=excluded, period=period.value)
        return []

    cursor = period_start(min(dated), period)
    last = period_start(max(max(dated), today), period)

    buckets: list[SpendBucket] = []
    while cursor <= last:
        following = next_period_start(cursor, period)
        total = _quantize(totals.get(cursor, _ZERO))
        count = counts.get(cursor, 0)
        buckets.append(
            SpendBucket(
                label=period_label(cursor, period),
                start=cursor,
                end=following - timedelta(days=1),
                total_spend=total,
                order_count=count,
                average_spend=_quantize(total / count) if count else _ZERO,
            )
        )
        cursor = following

    logger.debug(
        "spend_buckets_built",
        period=period.value,
        buckets=len(buckets),
        orders=len(dated),
        excluded=excluded,
    )
    return buckets
