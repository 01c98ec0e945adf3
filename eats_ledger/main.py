"""
Eats Ledger — Scraper Entrypoint

Configures structlog, runs one scrape, and turns any fatal error into a
non-zero exit status.

Run via:
    python -m eats_ledger.main
    CDP_URL=http://127.0.0.1:9222 python -m eats_ledger.main
"""

from __future__ import annotations

import asyncio
import logging
import sys

import structlog

from eats_ledger.config import Settings, settings
from eats_ledger.scraper.runner import ScrapeRunner


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def configure_logging(debug: bool = False) -> None:
    """
    Set up structured logging with JSON output.

    Args:
        debug: Emit DEBUG events (expansion passes, skipped rows) when True.
    """
    level = logging.DEBUG if debug else logging.INFO

    # Configure stdlib logging first (for third-party libraries)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application Startup
# ---------------------------------------------------------------------------


async def main(config: Settings = settings) -> None:
    """Run one scrape. Exceptions propagate to the caller."""
    logger = structlog.get_logger(__name__)
    logger.info(
        "scrape_run_begin",
        mode="attach" if config.CDP_URL else "launch",
        api_base_url=config.API_BASE_URL,
        debug=config.DEBUG_SCRAPER,
    )
    summary = await ScrapeRunner(config).run()
    logger.info(
        "scrape_run_complete",
        inserted=summary.inserted if summary else 0,
        skipped=summary.skipped if summary else 0,
    )


def run() -> int:
    """Console-script entry. Returns the process exit status."""
    configure_logging(debug=settings.DEBUG_SCRAPER)
    logger = structlog.get_logger(__name__)

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("scrape_run_interrupted_by_user")
        return 130
    except Exception as e:
        logger.error(
            "scrape_run_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1
    return 0


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    sys.exit(run())
