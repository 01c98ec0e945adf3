"""
SQLAlchemy 2.0 async DeclarativeBase for Eats Ledger.

All models inherit from this Base.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all Eats Ledger database models."""
    pass
