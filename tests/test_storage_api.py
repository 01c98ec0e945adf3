"""
Tests for order storage and the storage API
(eats_ledger/api/storage.py, eats_ledger/api/app.py).

Uses a file-backed SQLite database per test and drives the FastAPI app
in-process through httpx.ASGITransport.
"""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eats_ledger.api.storage import insert_orders, list_orders

ORDERED_AT = "Feb 22, 2026, 10:09:13 AM"


def wire_order(name: str = "Example", price: float = 24.99, at: str = ORDERED_AT) -> dict:
    return {
        "restaurantName": name,
        "totalPrice": price,
        "orderedAtText": at,
        "sourceSignature": f"{name}__{at}__{price}",
    }


def db_order(name: str = "Example", price: str = "24.99", at: str = ORDERED_AT) -> dict:
    return {
        "restaurant_name": name,
        "total_price": Decimal(price),
        "ordered_at_text": at,
        "source_signature": f"{name}__{at}__{price}",
    }


# ---------------------------------------------------------------------------
# Storage layer
# ---------------------------------------------------------------------------


class TestInsertOrders:
    @pytest.mark.asyncio
    async def test_insert_then_reinsert_skips(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        batch = [db_order("A"), db_order("B", "5.5")]

        async with session_factory() as session:
            first = await insert_orders(session, batch)
        async with session_factory() as session:
            second = await insert_orders(session, batch)

        assert (first.inserted, first.skipped) == (2, 0)
        assert (second.inserted, second.skipped) == (0, 2)

    @pytest.mark.asyncio
    async def test_duplicate_within_batch_is_skipped(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as session:
            result = await insert_orders(session, [db_order(), db_order()])

        assert (result.inserted, result.skipped) == (1, 1)

    @pytest.mark.asyncio
    async def test_empty_batch(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        async with session_factory() as session:
            result = await insert_orders(session, [])
        assert (result.inserted, result.skipped) == (0, 0)

    @pytest.mark.asyncio
    async def test_stores_split_date_and_time(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as session:
            await insert_orders(session, [db_order()])
        async with session_factory() as session:
            row = (
                await session.execute(
                    text("SELECT ordered_date, ordered_time, item_count FROM orders")
                )
            ).one()

        assert tuple(row) == ("Feb 22, 2026", "10:09:13 AM", 1)

    @pytest.mark.asyncio
    async def test_list_orders_newest_first(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as session:
            await insert_orders(session, [db_order("First"), db_order("Second")])
        async with session_factory() as session:
            orders = await list_orders(session)

        assert [o.restaurant_name for o in orders] == ["Second", "First"]
        assert orders[0].total_price == Decimal("24.99")
        assert orders[0].created_at is not None

    @pytest.mark.asyncio
    async def test_non_conflict_error_rolls_back_batch(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A NOT NULL violation mid-batch leaves nothing behind."""
        bad = db_order("Bad")
        bad["restaurant_name"] = None

        async with session_factory() as session:
            with pytest.raises(Exception):
                await insert_orders(session, [db_order("Good"), bad])
        async with session_factory() as session:
            assert await list_orders(session) == []


# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------


class TestStorageApi:
    @pytest.mark.asyncio
    async def test_health(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_bulk_insert_is_idempotent(self, api_client: httpx.AsyncClient) -> None:
        """Same batch twice: inserted=N then skipped=N."""
        batch = {"orders": [wire_order("A"), wire_order("B", 12.5), wire_order("C", 0)]}

        first = await api_client.post("/orders/bulk", json=batch)
        second = await api_client.post("/orders/bulk", json=batch)

        assert first.status_code == 201
        assert first.json() == {"inserted": 3, "skipped": 0}
        assert second.status_code == 201
        assert second.json() == {"inserted": 0, "skipped": 3}

    @pytest.mark.asyncio
    async def test_orders_listing_is_camel_case(self, api_client: httpx.AsyncClient) -> None:
        await api_client.post("/orders/bulk", json={"orders": [wire_order()]})

        response = await api_client.get("/orders")

        assert response.status_code == 200
        [order] = response.json()
        assert order["restaurantName"] == "Example"
        assert order["totalPrice"] == 24.99
        assert order["orderedAtText"] == ORDERED_AT
        assert order["sourceSignature"] == f"Example__{ORDERED_AT}__24.99"
        assert isinstance(order["id"], int)
        assert order["createdAt"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"orders": "nope"},
            {"orders": {"restaurantName": "Example"}},
            [wire_order()],
        ],
    )
    async def test_orders_must_be_array(self, api_client: httpx.AsyncClient, body: object) -> None:
        response = await api_client.post("/orders/bulk", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Body must be { orders: [...] }"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field, value",
        [
            ("restaurantName", 42),
            ("totalPrice", "24.99"),
            ("totalPrice", None),
            ("orderedAtText", None),
            ("sourceSignature", ["x"]),
        ],
    )
    async def test_malformed_element_rejected(
        self, api_client: httpx.AsyncClient, field: str, value: object
    ) -> None:
        bad = wire_order()
        bad[field] = value

        response = await api_client.post("/orders/bulk", json={"orders": [wire_order("Ok"), bad]})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid order object in payload."}
        listing = await api_client.get("/orders")
        assert listing.json() == []

    @pytest.mark.asyncio
    async def test_integer_price_accepted(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post("/orders/bulk", json={"orders": [wire_order(price=25)]})
        assert response.status_code == 201
        assert response.json() == {"inserted": 1, "skipped": 0}

    @pytest.mark.asyncio
    async def test_spend_by_month(self, api_client: httpx.AsyncClient) -> None:
        batch = {
            "orders": [
                wire_order("A", 10.0, "Jan 5, 2026, 12:00:00 PM"),
                wire_order("B", 5.5, "Jan 20, 2026, 1:00:00 PM"),
                wire_order("C", 20.0, "Mar 3, 2026, 6:30:00 PM"),
                wire_order("D", 99.0, "not a date"),
            ]
        }
        await api_client.post("/orders/bulk", json=batch)

        response = await api_client.get("/orders/spend", params={"period": "month"})

        assert response.status_code == 200
        buckets = response.json()
        assert [b["label"] for b in buckets[:3]] == ["2026-01", "2026-02", "2026-03"]
        assert buckets[0]["order_count"] == 2
        assert Decimal(str(buckets[0]["total_spend"])) == Decimal("15.50")
        assert Decimal(str(buckets[0]["average_spend"])) == Decimal("7.75")
        assert buckets[1]["order_count"] == 0
        assert Decimal(str(buckets[1]["average_spend"])) == Decimal("0")

    @pytest.mark.asyncio
    async def test_spend_rejects_unknown_period(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/orders/spend", params={"period": "decade"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid query parameters."}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["Infinity", "-Infinity", "NaN"])
    async def test_non_finite_price_rejected(self, api_client: httpx.AsyncClient, token: str) -> None:
        """Python's JSON parser accepts these tokens; they must not reach the table."""
        body = (
            '{"orders": [{"restaurantName": "Example", "totalPrice": %s, '
            '"orderedAtText": "%s", "sourceSignature": "sig"}]}' % (token, ORDERED_AT)
        )

        response = await api_client.post(
            "/orders/bulk", content=body, headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid order object in payload."}
        assert (await api_client.get("/orders")).json() == []
        assert (await api_client.get("/orders/spend")).status_code == 200

    @pytest.mark.asyncio
    async def test_cors_allows_cross_origin_reads(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/orders", headers={"Origin": "http://localhost:5173"})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
