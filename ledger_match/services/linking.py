"""Transfer links between line items.

A link marks the child as the other side of a transfer whose source is the
parent. Direction is canonical (earlier date first, then lower id), a child
has at most one active parent, and the active children of a parent must
stay below the parent's absolute amount (strictly, unless configured
otherwise).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_match.config import settings
from ledger_match.logger import get_logger
from ledger_match.models import Account, LineItem
from ledger_match.services import link_store
from ledger_match.services.errors import (
    AlreadyLinkedError,
    ChildAlreadyLinkedError,
    LinkCapacityExceededError,
    NotFoundError,
    ValidationError,
)
from ledger_match.services.normalization import absolute_amount
from ledger_match.services.ownership import get_owned_line_item, lock_owned_line_items

logger = get_logger(__name__)


@dataclass
class LinkResult:
    parent_t_id: int
    child_t_id: int
    linked_amount: Decimal
    parent_amount: Decimal


@dataclass
class LinkedItem:
    """A linked line item together with the name of its account."""

    line_item: LineItem
    account_name: str


@dataclass
class TransactionLinks:
    """Link neighbourhood of one line item."""

    line_item: LineItem
    parent: LinkedItem | None = None
    children: list[LinkedItem] = field(default_factory=list)
    linked_amount: Decimal = Decimal("0")

    @property
    def linking_allowed(self) -> bool:
        return self.linked_amount < absolute_amount(self.line_item.amount)


def normalize_link(a: LineItem, b: LineItem) -> tuple[LineItem, LineItem]:
    """Return ``(parent, child)``: the earlier date is the parent, ties go to the lower id."""
    if (a.date, a.id) <= (b.date, b.id):
        return a, b
    return b, a


def has_capacity(
    parent: LineItem,
    linked_amount: Decimal,
    child: LineItem,
    *,
    inclusive: bool | None = None,
) -> bool:
    """Whether ``child`` fits under ``parent`` next to the already linked amount.

    The total must stay strictly below the parent amount unless
    ``link_capacity_inclusive`` is enabled, which also admits an exact fill.
    """
    inclusive = settings.link_capacity_inclusive if inclusive is None else inclusive
    total = linked_amount + absolute_amount(child.amount)
    limit = absolute_amount(parent.amount)
    return total <= limit if inclusive else total < limit


async def create_link(
    db: AsyncSession,
    user_id: UUID,
    first_id: int,
    second_id: int,
) -> LinkResult:
    """Link two line items as a transfer.

    The caller's parent/child labels are advisory; the stored direction is
    always canonical. Both rows are locked before the link state and capacity
    are checked so concurrent requests cannot jointly overshoot a parent.

    Raises:
        ValidationError: both ids are the same
        NotFoundError: either line item is missing or owned by someone else
        AlreadyLinkedError: an active link exists for the pair
        ChildAlreadyLinkedError: the child already has an active parent
        LinkCapacityExceededError: the parent has no room for the child
    """
    if first_id == second_id:
        raise ValidationError("A transaction cannot be linked to itself")

    locked = await lock_owned_line_items(db, user_id, (first_id, second_id))
    for line_item_id in (first_id, second_id):
        if line_item_id not in locked:
            raise NotFoundError(f"Transaction {line_item_id} not found")

    parent, child = normalize_link(locked[first_id], locked[second_id])

    if await link_store.find_active_link(db, parent.id, child.id):
        raise AlreadyLinkedError(f"Transactions {parent.id} and {child.id} are already linked")

    existing_parent = await link_store.get_active_parent_link(db, child.id)
    if existing_parent:
        raise ChildAlreadyLinkedError(
            f"Transaction {child.id} is already linked to parent {existing_parent.parent_t_id}"
        )

    linked_amount = await link_store.active_children_amount(db, parent.id)
    parent_amount = absolute_amount(parent.amount)
    if not has_capacity(parent, linked_amount, child):
        logger.info(
            "Link rejected: parent capacity exceeded",
            parent_t_id=parent.id,
            child_t_id=child.id,
            linked_amount=str(linked_amount),
            child_amount=str(absolute_amount(child.amount)),
            parent_amount=str(parent_amount),
        )
        raise LinkCapacityExceededError(
            f"Linking {child.id} would bring children of {parent.id} to "
            f"{linked_amount + absolute_amount(child.amount)}, parent amount is {parent_amount}"
        )

    await link_store.create_link_record(db, parent.id, child.id)
    linked_amount += absolute_amount(child.amount)
    logger.info(
        "Transactions linked",
        parent_t_id=parent.id,
        child_t_id=child.id,
        linked_amount=str(linked_amount),
    )
    return LinkResult(
        parent_t_id=parent.id,
        child_t_id=child.id,
        linked_amount=linked_amount,
        parent_amount=parent_amount,
    )


async def unlink(db: AsyncSession, user_id: UUID, line_item_id: int, linked_id: int) -> None:
    """Soft-delete the active link between two line items, whichever way it is stored."""
    await get_owned_line_item(db, user_id, line_item_id)
    link = await link_store.find_active_link(db, line_item_id, linked_id, for_update=True)
    if not link:
        raise NotFoundError(f"No active link between {line_item_id} and {linked_id}")

    await link_store.soft_delete_link(db, link)
    logger.info(
        "Transactions unlinked",
        link_id=link.id,
        parent_t_id=link.parent_t_id,
        child_t_id=link.child_t_id,
    )


async def _with_account_names(db: AsyncSession, line_item_ids: list[int]) -> dict[int, LinkedItem]:
    if not line_item_ids:
        return {}
    result = await db.execute(
        select(LineItem, Account.name)
        .join(Account, Account.id == LineItem.account_id)
        .where(LineItem.id.in_(line_item_ids))
    )
    return {item.id: LinkedItem(line_item=item, account_name=name) for item, name in result.all()}


async def get_transaction_links(db: AsyncSession, user_id: UUID, line_item_id: int) -> TransactionLinks:
    line_item = await get_owned_line_item(db, user_id, line_item_id)

    parent_link = await link_store.get_active_parent_link(db, line_item.id)
    child_links = await link_store.get_active_child_links(db, line_item.id)

    related_ids = [link.child_t_id for link in child_links]
    if parent_link:
        related_ids.append(parent_link.parent_t_id)
    related = await _with_account_names(db, related_ids)

    return TransactionLinks(
        line_item=line_item,
        parent=related.get(parent_link.parent_t_id) if parent_link else None,
        children=[related[link.child_t_id] for link in child_links],
        linked_amount=await link_store.active_children_amount(db, line_item.id),
    )
