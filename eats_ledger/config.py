"""
Eats Ledger — Configuration & Constants

Environment-driven settings for the scraper and the storage API, plus the
fixed constants of the privacy-export orders page. The page constants are
an external contract: if Uber changes the table layout, this is where the
selectors and column positions change.

Usage:
    from eats_ledger.config import settings
"""

from __future__ import annotations

from enum import Enum

from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SpendPeriod(str, Enum):
    """Aggregation window for spend buckets."""
    WEEK = "week"     # ISO week, keyed by its Monday
    MONTH = "month"
    YEAR = "year"


# ---------------------------------------------------------------------------
# Target page contract (not environment-overridable)
# ---------------------------------------------------------------------------

ORDERS_PAGE_URL = "https://myprivacy.uber.com/exploreyourdata/orders"
TABLE_SELECTOR = "table"
ROW_SELECTOR = "table tbody tr"
CELL_SELECTOR = "td"
RESTAURANT_NESTED_SELECTOR = "span > span"

ORDERED_AT_COLUMN = 0
RESTAURANT_COLUMN = 1
PRICE_COLUMN = 4
MIN_CELLS_PER_ROW = 5

# ---------------------------------------------------------------------------
# Browser launch (launch mode only)
# ---------------------------------------------------------------------------

BROWSER_CHANNEL = "chrome"
VIEWPORT_WIDTH = 1440
VIEWPORT_HEIGHT = 900

# ---------------------------------------------------------------------------
# Timing & expansion policy
# ---------------------------------------------------------------------------

TABLE_READY_TIMEOUT_MS = 90_000
EXPAND_MAX_PASSES = 240
EXPAND_STABLE_PASSES = 3            # consecutive no-growth polls before we stop
EXPAND_SETTLE_MS = 1_500            # pause after each nudge
EXPAND_FINAL_SETTLE_MS = 10_000     # pause after the loop, before extraction
NUDGE_KEY = "End"
NUDGE_WHEEL_DELTA_Y = 6_000


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Runtime configuration for Eats Ledger.

    Loads from environment variables (and `.env`) with fallback defaults.
    The scraper reads only CDP_URL, PLAYWRIGHT_USER_DATA_DIR, API_BASE_URL
    and DEBUG_SCRAPER; the rest belongs to the storage API.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # -----------------------------------------------------------------------
    # Scraper
    # -----------------------------------------------------------------------
    CDP_URL: str | None = None                       # set => attach mode
    PLAYWRIGHT_USER_DATA_DIR: str = ".pw-user-data"  # launch mode profile
    API_BASE_URL: str = "http://localhost:3000"
    DEBUG_SCRAPER: bool = False

    # -----------------------------------------------------------------------
    # Storage API
    # -----------------------------------------------------------------------
    DATABASE_URL: str = "sqlite+aiosqlite:///data/ubereats.db"
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 3000


# Singleton instance
settings = Settings()
