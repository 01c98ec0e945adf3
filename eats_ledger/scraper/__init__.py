"""Eats Ledger — Scraper Layer"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class ScrapedOrder(BaseModel):
    """One order row extracted from the privacy-export table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    restaurant_name: str = Field(..., alias="restaurantName", min_length=1)
    total_price: Decimal = Field(..., alias="totalPrice", ge=0)
    ordered_at_text: str = Field(..., alias="orderedAtText", min_length=1)
    source_signature: str = Field(..., alias="sourceSignature")

    @field_serializer("total_price")
    def _price_as_number(self, value: Decimal) -> float:
        # The bulk endpoint requires a JSON number, not a decimal string.
        return float(value)

    def to_payload(self) -> dict[str, object]:
        """camelCase dict in the shape POST /orders/bulk expects."""
        return self.model_dump(mode="json", by_alias=True)
