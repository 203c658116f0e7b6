"""SQLAlchemy models package."""

from ledger_match.models.account import Account
from ledger_match.models.line_item import LineItem, LineItemTag, Tag
from ledger_match.models.link import LineItemLink

__all__ = [
    "Account",
    "LineItem",
    "LineItemLink",
    "LineItemTag",
    "Tag",
]
