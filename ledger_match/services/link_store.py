"""Persistence helpers for transfer links.

Links are looked up in both stored directions because callers rarely know
which side ended up as the canonical parent.
"""

from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import Select, and_, or_, select, union
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_match.models import LineItem, LineItemLink
from ledger_match.models.base import utc_now
from ledger_match.services.normalization import absolute_amount


def _pair_clause(a_id: int, b_id: int):
    return or_(
        and_(LineItemLink.parent_t_id == a_id, LineItemLink.child_t_id == b_id),
        and_(LineItemLink.parent_t_id == b_id, LineItemLink.child_t_id == a_id),
    )


async def find_active_link(
    db: AsyncSession,
    a_id: int,
    b_id: int,
    *,
    for_update: bool = False,
) -> LineItemLink | None:
    """Return the active link between two line items in either direction."""
    query = select(LineItemLink).where(_pair_clause(a_id, b_id)).where(LineItemLink.deleted_at.is_(None)).limit(1)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_active_parent_link(db: AsyncSession, child_id: int) -> LineItemLink | None:
    result = await db.execute(
        select(LineItemLink).where(LineItemLink.child_t_id == child_id).where(LineItemLink.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def get_active_child_links(db: AsyncSession, parent_id: int) -> list[LineItemLink]:
    result = await db.execute(
        select(LineItemLink)
        .where(LineItemLink.parent_t_id == parent_id)
        .where(LineItemLink.deleted_at.is_(None))
        .order_by(LineItemLink.child_t_id)
    )
    return list(result.scalars())


async def get_active_links_touching(
    db: AsyncSession,
    line_item_ids: Iterable[int],
    *,
    for_update: bool = False,
) -> list[LineItemLink]:
    """Active links having any of ``line_item_ids`` as parent or child."""
    ids = list(line_item_ids)
    if not ids:
        return []
    query = (
        select(LineItemLink)
        .where(or_(LineItemLink.parent_t_id.in_(ids), LineItemLink.child_t_id.in_(ids)))
        .where(LineItemLink.deleted_at.is_(None))
        .order_by(LineItemLink.id)
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return list(result.scalars())


async def active_children_amount(
    db: AsyncSession,
    parent_id: int,
    *,
    exclude_link_id: int | None = None,
) -> Decimal:
    """Sum of ``abs(amount)`` over the active children of ``parent_id``."""
    query = (
        select(LineItem.amount)
        .join(LineItemLink, LineItem.id == LineItemLink.child_t_id)
        .where(LineItemLink.parent_t_id == parent_id)
        .where(LineItemLink.deleted_at.is_(None))
    )
    if exclude_link_id is not None:
        query = query.where(LineItemLink.id != exclude_link_id)
    result = await db.execute(query)
    return sum((absolute_amount(amount) for amount in result.scalars()), Decimal("0"))


def linked_line_item_ids() -> Select:
    """Selectable of every line item id currently in an active link."""
    parents = select(LineItemLink.parent_t_id.label("line_item_id")).where(LineItemLink.deleted_at.is_(None))
    children = select(LineItemLink.child_t_id.label("line_item_id")).where(LineItemLink.deleted_at.is_(None))
    linked = union(parents, children).subquery()
    return select(linked.c.line_item_id)


async def create_link_record(db: AsyncSession, parent_id: int, child_id: int) -> LineItemLink:
    link = LineItemLink(parent_t_id=parent_id, child_t_id=child_id)
    db.add(link)
    await db.flush()
    return link


async def soft_delete_link(db: AsyncSession, link: LineItemLink) -> LineItemLink:
    link.deleted_at = utc_now()
    await db.flush()
    return link


async def find_blocking_link(
    db: AsyncSession,
    parent_id: int,
    child_id: int,
    *,
    exclude_link_id: int,
) -> LineItemLink | None:
    """Another active link that already covers the pair or already parents ``child_id``."""
    result = await db.execute(
        select(LineItemLink)
        .where(LineItemLink.deleted_at.is_(None))
        .where(LineItemLink.id != exclude_link_id)
        .where(or_(_pair_clause(parent_id, child_id), LineItemLink.child_t_id == child_id))
        .limit(1)
    )
    return result.scalar_one_or_none()
