"""API routers package."""

from ledger_match.routers import duplicates, links

__all__ = [
    "duplicates",
    "links",
]
