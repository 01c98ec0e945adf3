"""
Models package — export all SQLAlchemy models.
"""

from eats_ledger.models.base import Base
from eats_ledger.models.order import Order

__all__ = ["Base", "Order"]
