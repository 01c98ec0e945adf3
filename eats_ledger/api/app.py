"""
Eats Ledger — Storage API

    GET  /health
    GET  /orders              all orders, newest first
    POST /orders/bulk         {"orders": [...]} -> 201 {"inserted", "skipped"}
    GET  /orders/spend        ?period=week|month|year

Field names on the wire are camelCase, matching what the scraper posts.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictStr
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eats_ledger import __version__
from eats_ledger.api.storage import (
    InsertResult,
    create_engine_and_tables,
    insert_orders,
    list_orders,
)
from eats_ledger.config import SpendPeriod, settings
from eats_ledger.engine.buckets import SpendBucket, build_spend_buckets
from eats_ledger.models import Order

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Request / Response Models
# ---------------------------------------------------------------------------


class BulkOrder(BaseModel):
    """One element of POST /orders/bulk. Types are strict: no coercion."""

    model_config = ConfigDict(populate_by_name=True)

    restaurant_name: StrictStr = Field(..., alias="restaurantName")
    total_price: float = Field(..., alias="totalPrice", strict=True, allow_inf_nan=False)
    ordered_at_text: StrictStr = Field(..., alias="orderedAtText")
    source_signature: StrictStr = Field(..., alias="sourceSignature")


class BulkOrdersRequest(BaseModel):
    orders: list[BulkOrder]


def order_to_json(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "restaurantName": order.restaurant_name,
        "totalPrice": float(order.total_price),
        "orderedAtText": order.ordered_at_text,
        "sourceSignature": order.source_signature,
        "createdAt": order.created_at.isoformat() if order.created_at else None,
    }


# ---------------------------------------------------------------------------
# App Factory
# ---------------------------------------------------------------------------


def create_app(
    database_url: str | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """
    Build the storage API.

    Pass session_factory to reuse an already-initialized database (tests);
    otherwise the engine is created and tables ensured on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = None
        if getattr(app.state, "session_factory", None) is None:
            engine, app.state.session_factory = await create_engine_and_tables(
                database_url or settings.DATABASE_URL
            )
        try:
            yield
        finally:
            if engine is not None:
                await engine.dispose()
                logger.info("storage_engine_disposed", source="api")

    app = FastAPI(title="Eats Ledger API", version=__version__, lifespan=lifespan)
    app.state.session_factory = session_factory
    # Browser dashboards read /orders from another origin.
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        locations = [tuple(err.get("loc", ())) for err in exc.errors()]
        if not any(loc[:1] == ("body",) for loc in locations):
            message = "Invalid query parameters."
        elif any(len(loc) > 2 for loc in locations):
            # Deeper than body.orders: a single element is malformed.
            message = "Invalid order object in payload."
        else:
            message = "Body must be { orders: [...] }"
        logger.warning(
            "api_request_rejected",
            path=request.url.path,
            error_count=len(exc.errors()),
            source="api",
        )
        return JSONResponse(status_code=400, content={"error": message})

    async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
        async with request.app.state.session_factory() as session:
            yield session

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/orders")
    async def get_orders(session: AsyncSession = Depends(get_session)) -> list[dict[str, Any]]:
        return [order_to_json(order) for order in await list_orders(session)]

    @app.post("/orders/bulk", status_code=201)
    async def post_orders_bulk(
        payload: BulkOrdersRequest,
        session: AsyncSession = Depends(get_session),
    ) -> InsertResult:
        return await insert_orders(
            session, [order.model_dump() for order in payload.orders]
        )

    @app.get("/orders/spend")
    async def get_spend(
        period: SpendPeriod = SpendPeriod.MONTH,
        session: AsyncSession = Depends(get_session),
    ) -> list[SpendBucket]:
        return build_spend_buckets(await list_orders(session), period)

    return app
