"""
Eats Ledger — Row Reader

The only code that knows which table column holds what. If the export page
changes its layout, swap the RowReader; expansion and ingest stay as they are.

Cell reads come back as a RowField: Present(text) with normalized, non-empty
text, or Absent(reason). Nothing downstream has to guess between None and ''.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Union

from eats_ledger.config import (
    CELL_SELECTOR,
    MIN_CELLS_PER_ROW,
    ORDERED_AT_COLUMN,
    PRICE_COLUMN,
    RESTAURANT_COLUMN,
    RESTAURANT_NESTED_SELECTOR,
)
from eats_ledger.scraper.normalize import normalize_text


@dataclass(frozen=True)
class Present:
    text: str


@dataclass(frozen=True)
class Absent:
    reason: str


RowField = Union[Present, Absent]


@dataclass(frozen=True)
class RawRow:
    """Positional fields read from one table row, not yet validated."""

    ordered_at: RowField
    restaurant: RowField
    price: RowField


@dataclass(frozen=True)
class RowRejection:
    """A row we skip, with enough detail to debug-log why."""

    reason: str  # too_few_cells | missing_ordered_at | missing_restaurant | unparseable_price
    details: dict[str, Any]


def field_text(field: RowField) -> str:
    """Text of a Present field, '' for Absent. For logging."""
    return field.text if isinstance(field, Present) else ""


async def read_field(locator: Any) -> RowField:
    """Read and normalize a locator's text content."""
    text = normalize_text(await locator.text_content())
    if not text:
        return Absent("empty")
    return Present(text)


class RowReader(Protocol):
    """Turns one row handle into a RawRow, or rejects it."""

    async def read(self, row: Any) -> RawRow | RowRejection:
        ...


class PrivacyTableRowReader:
    """
    Column contract of the Uber privacy-export orders table:

    - cell 0: ordered-at text, e.g. 'Feb 22, 2026, 10:09:13 AM'
    - cell 1: restaurant, inside a nested `span > span`; the whole cell text
      is the fallback when that span is missing or empty
    - cell 4: total, e.g. 'CA$24.99'
    """

    async def read(self, row: Any) -> RawRow | RowRejection:
        cells = row.locator(CELL_SELECTOR)
        cell_count = await cells.count()
        if cell_count < MIN_CELLS_PER_ROW:
            return RowRejection("too_few_cells", {"cell_count": cell_count})

        ordered_at = await read_field(cells.nth(ORDERED_AT_COLUMN))
        restaurant = await self._read_restaurant(cells.nth(RESTAURANT_COLUMN))
        price = await read_field(cells.nth(PRICE_COLUMN))
        return RawRow(ordered_at=ordered_at, restaurant=restaurant, price=price)

    async def _read_restaurant(self, cell: Any) -> RowField:
        nested = cell.locator(RESTAURANT_NESTED_SELECTOR)
        # Count first: text_content() on a missing node waits out the timeout.
        if await nested.count() > 0:
            name = await read_field(nested.first)
            if isinstance(name, Present):
                return name
        return await read_field(cell)
