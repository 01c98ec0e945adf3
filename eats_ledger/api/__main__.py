"""
Run the storage API under uvicorn.

    python -m eats_ledger.api
"""

from __future__ import annotations

import uvicorn

from eats_ledger.api.app import create_app
from eats_ledger.config import settings
from eats_ledger.main import configure_logging


def run() -> None:
    configure_logging(debug=settings.DEBUG_SCRAPER)
    uvicorn.run(create_app(), host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
