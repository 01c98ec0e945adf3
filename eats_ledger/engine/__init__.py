"""Eats Ledger — Analytics Engine"""
