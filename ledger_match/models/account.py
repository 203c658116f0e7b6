"""Account model used for ownership checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_match.database import Base
from ledger_match.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin

if TYPE_CHECKING:
    from ledger_match.models.line_item import LineItem


class Account(UUIDMixin, UserOwnedMixin, TimestampMixin, Base):
    """A bank or brokerage account whose statements are imported as line items."""

    __tablename__ = "accounts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    institution: Mapped[str | None] = mapped_column(String(255), nullable=True)

    line_items: Mapped[list[LineItem]] = relationship(
        "LineItem",
        back_populates="account",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Account {self.name}>"
