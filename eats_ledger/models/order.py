"""
Eats Ledger — Order Model

One row per scraped order. source_signature is the only dedup key; a
second insert with the same signature is skipped, never updated.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, INTEGER, TIMESTAMP, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from eats_ledger.models.base import Base


class Order(Base):
    """A food-delivery order as persisted by the storage API."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(INTEGER, primary_key=True, autoincrement=True)
    restaurant_name: Mapped[str] = mapped_column(String, nullable=False)
    item_count: Mapped[int] = mapped_column(
        INTEGER, nullable=False, server_default=text("1"),
        comment="The export page has no item breakdown; always 1",
    )
    total_price: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    ordered_date: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("''"), comment="e.g. 'Feb 22, 2026'"
    )
    ordered_time: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("''"), comment="e.g. '10:09:13 AM'"
    )
    ordered_at_text: Mapped[str] = mapped_column(
        String, nullable=False, comment="Timestamp text verbatim from the export page"
    )
    source_signature: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} restaurant={self.restaurant_name!r} "
            f"total={self.total_price} at={self.ordered_at_text!r}>"
        )
