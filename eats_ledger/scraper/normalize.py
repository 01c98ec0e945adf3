"""
Eats Ledger — Text Normalization, Price Parsing & Order Signatures

Pure helpers shared by the row extraction engine and the storage API.
Prices are Decimal throughout; float only appears on the JSON wire.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from eats_ledger.scraper import ScrapedOrder

SIGNATURE_DELIMITER = "__"

_WHITESPACE_RE = re.compile(r"\s+")
_PRICE_RE = re.compile(r"\$\s*([\d,]+(?:\.\d{1,2})?)")


def normalize_text(value: str | None) -> str:
    """Collapse whitespace runs to one space and trim. None becomes ''."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip()


def parse_price(text: str | None) -> Decimal | None:
    """
    Parse the first dollar amount in ``text``.

    Accepts thousands separators and up to two decimals:
    '$24.99' -> 24.99, '$1,234.5' -> 1234.5, 'CA$0' -> 0.

    Returns:
        Decimal amount, or None if no amount is present or it is not a number.
    """
    if not text:
        return None
    match = _PRICE_RE.search(text)
    if match is None:
        return None
    try:
        amount = Decimal(match.group(1).replace(",", ""))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def format_price(amount: Decimal) -> str:
    """
    Shortest plain rendering of ``amount``: 24.90 -> '24.9', 100 -> '100'.

    Signatures embed this form, so it must never change for a given value.
    """
    return format(amount.normalize(), "f")


def build_signature(restaurant_name: str, ordered_at_text: str, total_price: Decimal) -> str:
    """Deterministic dedup key: name__orderedAt__price."""
    return SIGNATURE_DELIMITER.join(
        (restaurant_name, ordered_at_text, format_price(total_price))
    )


def build_scraped_order(
    restaurant_name: str,
    total_price: Decimal,
    ordered_at_text: str,
) -> ScrapedOrder:
    """Assemble a ScrapedOrder and stamp its source signature."""
    return ScrapedOrder(
        restaurant_name=restaurant_name,
        total_price=total_price,
        ordered_at_text=ordered_at_text,
        source_signature=build_signature(restaurant_name, ordered_at_text, total_price),
    )


def split_ordered_at_text(ordered_at_text: str) -> tuple[str, str]:
    """
    Split 'Feb 22, 2026, 10:09:13 AM' into ('Feb 22, 2026', '10:09:13 AM').

    Text with fewer than three comma-separated segments is returned whole as
    the date, with an empty time.
    """
    segments = [s.strip() for s in ordered_at_text.split(",") if s.strip()]
    if len(segments) >= 3:
        return ", ".join(segments[:2]), ", ".join(segments[2:])
    return ordered_at_text, ""
