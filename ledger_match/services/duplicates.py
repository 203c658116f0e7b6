"""Duplicate detection for imported line items.

Items are first bucketed on an exact key built from normalized numeric
fields, then matched inside each bucket on description/memo. Matches are
joined with union-find so every line item lands in at most one group.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ledger_match.config import settings
from ledger_match.logger import async_log_timing, get_logger
from ledger_match.models import LineItem, LineItemTag
from ledger_match.services.normalization import normalize_amount, normalize_symbol, normalize_text
from ledger_match.services.ownership import get_owned_account

logger = get_logger(__name__)


@dataclass
class DuplicateGroup:
    """Line items judged to be one real transaction, plus the survivor."""

    key: str
    line_items: list[LineItem]
    keep_id: int
    delete_ids: list[int]


@dataclass
class DuplicateScanResult:
    """Result of a duplicate scan over one account."""

    groups: list[DuplicateGroup] = field(default_factory=list)
    marked_as_non_duplicate: int = 0
    previously_marked_count: int = 0
    truncated: bool = False

    @property
    def total(self) -> int:
        return len(self.groups)


class _UnionFind:
    """Disjoint sets over line item ids."""

    def __init__(self) -> None:
        self._parent: dict[int, int] = {}
        self._rank: dict[int, int] = {}

    def find(self, x: int) -> int:
        if x not in self._parent:
            self._parent[x] = x
            self._rank[x] = 0
        while self._parent[x] != x:
            self._parent[x] = self._parent[self._parent[x]]
            x = self._parent[x]
        return x

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        if self._rank[ra] < self._rank[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        if self._rank[ra] == self._rank[rb]:
            self._rank[ra] += 1

    def components(self, ids: Iterable[int]) -> dict[int, list[int]]:
        groups: dict[int, list[int]] = defaultdict(list)
        for i in ids:
            groups[self.find(i)].append(i)
        return dict(groups)


def duplicate_key(item: LineItem) -> str:
    """Exact-match key: ``date|quantity|amount|symbol|balance_after``."""
    return "|".join(
        [
            item.date.isoformat(),
            normalize_amount(item.quantity),
            normalize_amount(item.amount),
            normalize_symbol(item.symbol),
            normalize_amount(item.balance_after),
        ]
    )


def build_key_index(items: Iterable[LineItem]) -> dict[str, list[LineItem]]:
    """Bucket line items by :func:`duplicate_key`, keeping input order."""
    index: dict[str, list[LineItem]] = {}
    for item in items:
        index.setdefault(duplicate_key(item), []).append(item)
    return index


def text_matches(a: LineItem, b: LineItem) -> bool:
    """Description/memo are equal, or equal once one side is swapped.

    Some importers write the payee into memo and the reference into
    description, so ``(desc, memo)`` is also compared against ``(memo, desc)``.
    """
    desc_a, memo_a = normalize_text(a.description), normalize_text(a.memo)
    desc_b, memo_b = normalize_text(b.description), normalize_text(b.memo)
    if (desc_a, memo_a) == (desc_b, memo_b):
        return True
    return (desc_a, memo_a) == (memo_b, desc_b)


def _sort_key(item: LineItem) -> tuple[date, int]:
    return (item.date, item.id)


def resolve_groups(index: dict[str, list[LineItem]]) -> list[DuplicateGroup]:
    """Turn key buckets into disjoint duplicate groups.

    Groups come back ordered by their earliest member (date, then id). The
    survivor of each group is the member with the highest id.
    """
    groups: list[DuplicateGroup] = []
    for key, bucket in index.items():
        if len(bucket) < 2:
            continue

        uf = _UnionFind()
        for i, left in enumerate(bucket):
            for right in bucket[i + 1 :]:
                if text_matches(left, right):
                    uf.union(left.id, right.id)

        by_id = {item.id: item for item in bucket}
        for member_ids in uf.components(by_id).values():
            if len(member_ids) < 2:
                continue
            members = sorted((by_id[i] for i in member_ids), key=_sort_key)
            keep_id = max(member_ids)
            groups.append(
                DuplicateGroup(
                    key=key,
                    line_items=members,
                    keep_id=keep_id,
                    delete_ids=sorted(i for i in member_ids if i != keep_id),
                )
            )

    groups.sort(key=lambda group: _sort_key(group.line_items[0]))
    return groups


def _scope_filters(account_id: UUID, year: int | None) -> list:
    filters = [LineItem.account_id == account_id]
    if year is not None:
        filters.append(LineItem.date.between(date(year, 1, 1), date(year, 12, 31)))
    return filters


async def find_duplicates(
    db: AsyncSession,
    user_id: UUID,
    account_id: UUID,
    *,
    year: int | None = None,
    max_groups: int | None = None,
) -> DuplicateScanResult:
    """Scan an account for duplicate line items.

    Only items not yet verified are scanned. When the scan is complete (not
    capped by ``max_groups``) every scanned item outside a group is flagged
    ``verified_not_duplicate`` so later scans skip it.
    """
    await get_owned_account(db, user_id, account_id)
    cap = max_groups if max_groups is not None else settings.dedup_max_groups
    filters = _scope_filters(account_id, year)

    async with async_log_timing(
        "find_duplicates",
        logger=logger,
        account_id=str(account_id),
        year=year,
    ) as timing:
        previously_marked = await db.scalar(
            select(func.count(LineItem.id)).where(*filters).where(LineItem.verified_not_duplicate.is_(True))
        )

        result = await db.execute(
            select(LineItem)
            .where(*filters)
            .where(LineItem.verified_not_duplicate.is_(False))
            .order_by(LineItem.date, LineItem.id)
            .options(selectinload(LineItem.tag_links).selectinload(LineItemTag.tag))
        )
        items: Sequence[LineItem] = result.scalars().all()

        index = build_key_index(items)
        all_groups = resolve_groups(index)
        truncated = len(all_groups) > cap
        scan = DuplicateScanResult(
            groups=all_groups[:cap],
            previously_marked_count=previously_marked or 0,
            truncated=truncated,
        )

        if truncated:
            logger.info(
                "Duplicate scan capped; skipping verification memo",
                account_id=str(account_id),
                groups_found=len(all_groups),
                cap=cap,
            )
        else:
            grouped_ids = {i for group in all_groups for i in (group.keep_id, *group.delete_ids)}
            unique_ids = [item.id for item in items if item.id not in grouped_ids]
            if unique_ids:
                await db.execute(
                    update(LineItem)
                    .where(LineItem.id.in_(unique_ids))
                    .values(verified_not_duplicate=True)
                    .execution_options(synchronize_session="fetch")
                )
                await db.flush()
            scan.marked_as_non_duplicate = len(unique_ids)

        timing.update(
            scanned=len(items),
            buckets=len(index),
            groups=scan.total,
            marked=scan.marked_as_non_duplicate,
            truncated=truncated,
        )

    return scan


async def reset_duplicate_verification(
    db: AsyncSession,
    user_id: UUID,
    account_id: UUID,
    *,
    year: int | None = None,
) -> int:
    """Clear ``verified_not_duplicate`` so the next scan covers every item."""
    await get_owned_account(db, user_id, account_id)
    result = await db.execute(
        update(LineItem)
        .where(*_scope_filters(account_id, year))
        .where(LineItem.verified_not_duplicate.is_(True))
        .values(verified_not_duplicate=False)
        .execution_options(synchronize_session="fetch")
    )
    await db.flush()
    reset = result.rowcount or 0
    logger.info("Duplicate verification reset", account_id=str(account_id), year=year, reset=reset)
    return reset
