"""Ownership-scoped lookups shared by the matching services."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_match.models import Account, LineItem
from ledger_match.services.errors import NotFoundError


async def get_owned_account(db: AsyncSession, user_id: UUID, account_id: UUID) -> Account:
    result = await db.execute(select(Account).where(Account.id == account_id).where(Account.user_id == user_id))
    account = result.scalar_one_or_none()
    if not account:
        raise NotFoundError(f"Account {account_id} not found")
    return account


async def get_owned_line_item(db: AsyncSession, user_id: UUID, line_item_id: int) -> LineItem:
    result = await db.execute(
        select(LineItem)
        .join(Account, Account.id == LineItem.account_id)
        .where(LineItem.id == line_item_id)
        .where(Account.user_id == user_id)
    )
    line_item = result.scalar_one_or_none()
    if not line_item:
        raise NotFoundError(f"Transaction {line_item_id} not found")
    return line_item


async def lock_owned_line_items(db: AsyncSession, user_id: UUID, line_item_ids: Iterable[int]) -> dict[int, LineItem]:
    """Lock the caller's line items in ascending id order.

    Ids that do not exist or belong to another user are absent from the
    result. Locking in a fixed order keeps concurrent linkers from deadlocking.
    """
    ids = sorted(set(line_item_ids))
    if not ids:
        return {}
    result = await db.execute(
        select(LineItem)
        .join(Account, Account.id == LineItem.account_id)
        .where(LineItem.id.in_(ids))
        .where(Account.user_id == user_id)
        .order_by(LineItem.id)
        .with_for_update(of=LineItem)
    )
    return {item.id: item for item in result.scalars()}
