"""Duplicate detection, merge and transfer linking for ledger line items."""

__version__ = "0.1.0"
