"""Transfer candidate search.

A withdrawal in one account usually shows up as a deposit in another within
a few days and for roughly the same amount (fees, FX spread). Candidates are
ranked by how close their absolute amount is to the source.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_match.config import settings
from ledger_match.logger import get_logger
from ledger_match.models import Account, LineItem
from ledger_match.services import link_store
from ledger_match.services.normalization import absolute_amount
from ledger_match.services.ownership import get_owned_line_item

logger = get_logger(__name__)


@dataclass
class LinkCandidate:
    line_item: LineItem
    account_name: str
    amount_difference: Decimal


@dataclass
class LinkCandidates:
    source: LineItem
    matches: list[LinkCandidate] = field(default_factory=list)
    linked_amount: Decimal = Decimal("0")

    @property
    def linking_allowed(self) -> bool:
        return self.linked_amount < absolute_amount(self.source.amount)


def amount_window(amount: Decimal, tolerance: Decimal) -> tuple[Decimal, Decimal]:
    """Inclusive ``(low, high)`` bounds on absolute amount."""
    base = absolute_amount(amount)
    return base * (1 - tolerance), base * (1 + tolerance)


async def find_link_candidates(
    db: AsyncSession,
    user_id: UUID,
    line_item_id: int,
    *,
    window_days: int | None = None,
    tolerance: Decimal | None = None,
    limit: int | None = None,
) -> LinkCandidates:
    """Find line items in the caller's other accounts that may be the other side of a transfer.

    Items already taking part in an active link, as parent or child, are
    never offered.
    """
    window_days = settings.link_date_window_days if window_days is None else window_days
    tolerance = settings.link_amount_tolerance if tolerance is None else tolerance
    limit = settings.link_candidate_limit if limit is None else limit

    source = await get_owned_line_item(db, user_id, line_item_id)
    window = timedelta(days=window_days)
    low, high = amount_window(source.amount, tolerance)
    source_amount = absolute_amount(source.amount)

    result = await db.execute(
        select(LineItem, Account.name)
        .join(Account, Account.id == LineItem.account_id)
        .where(Account.user_id == user_id)
        .where(LineItem.account_id != source.account_id)
        .where(LineItem.id != source.id)
        .where(LineItem.date.between(source.date - window, source.date + window))
        .where(LineItem.id.not_in(link_store.linked_line_item_ids()))
    )

    matches = []
    for item, account_name in result.all():
        amount = absolute_amount(item.amount)
        if low <= amount <= high:
            matches.append(
                LinkCandidate(
                    line_item=item,
                    account_name=account_name,
                    amount_difference=abs(amount - source_amount),
                )
            )
    matches.sort(key=lambda c: (c.amount_difference, c.line_item.date, c.line_item.id))

    linked_amount = await link_store.active_children_amount(db, source.id)
    logger.debug(
        "Link candidates found",
        line_item_id=source.id,
        in_window=len(matches),
        returned=min(len(matches), limit),
    )
    return LinkCandidates(source=source, matches=matches[:limit], linked_amount=linked_amount)
