"""
Eats Ledger — Order Storage

Async persistence for the storage API. Inserts go through
ON CONFLICT (source_signature) DO NOTHING, so a conflicting row counts as
skipped instead of failing the batch. Any other error rolls back the whole
batch.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Sequence

import structlog
from pydantic import BaseModel
from sqlalchemy import DECIMAL, bindparam, select, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from eats_ledger.models import Base, Order
from eats_ledger.scraper.normalize import split_ordered_at_text

logger = structlog.get_logger(__name__)

_INSERT_ORDER = text("""
    INSERT INTO orders (
        restaurant_name, item_count, total_price, ordered_date,
        ordered_time, ordered_at_text, source_signature
    )
    VALUES (
        :restaurant_name, 1, :total_price, :ordered_date,
        :ordered_time, :ordered_at_text, :source_signature
    )
    ON CONFLICT (source_signature) DO NOTHING
""").bindparams(bindparam("total_price", type_=DECIMAL(10, 2)))


class InsertResult(BaseModel):
    inserted: int
    skipped: int


async def create_engine_and_tables(database_url: str) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Create the async engine, ensure tables exist, and build a session factory.

    Returns:
        (engine, session_factory) tuple.
    """
    _ensure_sqlite_dir(database_url)
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    logger.info("storage_ready", database_url=database_url, source="storage")
    return engine, session_factory


def _ensure_sqlite_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


async def insert_orders(session: AsyncSession, orders: Sequence[dict[str, Any]]) -> InsertResult:
    """
    Insert orders in one transaction, skipping known signatures.

    Args:
        session: Open AsyncSession (no transaction in progress).
        orders: Dicts with restaurant_name, total_price, ordered_at_text,
            source_signature.

    Returns:
        InsertResult with inserted/skipped counts.
    """
    if not orders:
        return InsertResult(inserted=0, skipped=0)

    inserted = 0
    skipped = 0

    async with session.begin():
        for order in orders:
            ordered_date, ordered_time = split_ordered_at_text(order["ordered_at_text"])
            result = await session.execute(
                _INSERT_ORDER,
                {
                    "restaurant_name": order["restaurant_name"],
                    "total_price": Decimal(str(order["total_price"])),
                    "ordered_date": ordered_date,
                    "ordered_time": ordered_time,
                    "ordered_at_text": order["ordered_at_text"],
                    "source_signature": order["source_signature"],
                },
            )
            if result.rowcount == 1:
                inserted += 1
            else:
                skipped += 1

    logger.info("storage_orders_inserted", inserted=inserted, skipped=skipped, source="storage")
    return InsertResult(inserted=inserted, skipped=skipped)


async def list_orders(session: AsyncSession) -> list[Order]:
    """All orders, newest insert first."""
    result = await session.execute(select(Order).order_by(Order.id.desc()))
    return list(result.scalars().all())
