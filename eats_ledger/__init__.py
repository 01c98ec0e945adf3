"""Eats Ledger — food-delivery order history scraper and spend tracker."""

__version__ = "0.1.0"
