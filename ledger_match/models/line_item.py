"""Ledger line item and tagging models."""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, Numeric, String, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_match.database import Base
from ledger_match.models.base import SoftDeleteMixin, TimestampMixin, UserOwnedMixin

if TYPE_CHECKING:
    from ledger_match.models.account import Account


class LineItem(TimestampMixin, Base):
    """A single imported ledger transaction.

    Ids are integers assigned in insert order, so the highest id in a
    duplicate group is the most recent import of that transaction.
    """

    __tablename__ = "line_items"
    __table_args__ = (Index("ix_line_items_account_date", "account_id", "date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    symbol: Mapped[str | None] = mapped_column(String(32), nullable=True)
    balance_after: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified_not_duplicate: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    account: Mapped[Account] = relationship("Account", back_populates="line_items")
    tag_links: Mapped[list[LineItemTag]] = relationship(
        "LineItemTag",
        back_populates="line_item",
        passive_deletes=True,
    )

    @property
    def active_tags(self) -> list[Tag]:
        return [link.tag for link in self.tag_links if link.deleted_at is None]

    def __repr__(self) -> str:
        return f"<LineItem {self.id} {self.date} {self.amount}>"


class Tag(UserOwnedMixin, SoftDeleteMixin, Base):
    """User-defined label attached to line items."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Tag {self.label}>"


class LineItemTag(SoftDeleteMixin, Base):
    """Mapping between a line item and a tag."""

    __tablename__ = "line_item_tags"

    line_item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("line_items.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    )

    line_item: Mapped[LineItem] = relationship("LineItem", back_populates="tag_links")
    tag: Mapped[Tag] = relationship("Tag")
