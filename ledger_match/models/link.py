"""Transfer link between two line items."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_match.database import Base
from ledger_match.models.base import SoftDeleteMixin, utc_now
from ledger_match.models.line_item import LineItem

ACTIVE_LINK_CLAUSE = text("deleted_at IS NULL")


class LineItemLink(SoftDeleteMixin, Base):
    """Marks ``child`` as the other side of a transfer sourced from ``parent``.

    A parent may have several children (split transfers); a child has at most
    one active parent. Unlinking sets ``deleted_at`` and keeps the row.
    """

    __tablename__ = "line_item_links"
    __table_args__ = (
        CheckConstraint("parent_t_id <> child_t_id", name="ck_line_item_links_distinct"),
        Index("ix_line_item_links_parent", "parent_t_id"),
        Index(
            "uq_line_item_links_active_child",
            "child_t_id",
            unique=True,
            postgresql_where=ACTIVE_LINK_CLAUSE,
            sqlite_where=ACTIVE_LINK_CLAUSE,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_t_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("line_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    child_t_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("line_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    parent: Mapped[LineItem] = relationship("LineItem", foreign_keys=[parent_t_id])
    child: Mapped[LineItem] = relationship("LineItem", foreign_keys=[child_t_id])

    def __repr__(self) -> str:
        state = "active" if self.deleted_at is None else "deleted"
        return f"<LineItemLink {self.parent_t_id}->{self.child_t_id} {state}>"
