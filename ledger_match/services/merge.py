"""Merge confirmed duplicate groups into their surviving line item."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_match.logger import async_log_timing, get_logger
from ledger_match.models import LineItem, LineItemLink, LineItemTag
from ledger_match.services import link_store
from ledger_match.services.linking import has_capacity
from ledger_match.services.ownership import get_owned_account

logger = get_logger(__name__)


@dataclass
class MergeInstruction:
    keep_id: int
    delete_ids: list[int]


@dataclass
class SkippedMerge:
    keep_id: int
    delete_ids: list[int]
    reason: str


@dataclass
class MergeResult:
    """Totals across every applied instruction."""

    merged_count: int = 0
    tags_added: int = 0
    links_repointed: int = 0
    links_retired: int = 0
    skipped: list[SkippedMerge] = field(default_factory=list)


async def _lock_rows(db: AsyncSession, account_id: UUID, ids: list[int]) -> dict[int, LineItem]:
    result = await db.execute(
        select(LineItem)
        .where(LineItem.account_id == account_id)
        .where(LineItem.id.in_(ids))
        .order_by(LineItem.id)
        .with_for_update()
    )
    return {item.id: item for item in result.scalars()}


async def _union_tags(db: AsyncSession, keep_id: int, delete_ids: list[int]) -> int:
    """Attach the active tags of ``delete_ids`` to ``keep_id``; return how many were new."""
    keep_result = await db.execute(select(LineItemTag).where(LineItemTag.line_item_id == keep_id))
    keep_mappings = {mapping.tag_id: mapping for mapping in keep_result.scalars()}

    source_result = await db.execute(
        select(LineItemTag.tag_id)
        .where(LineItemTag.line_item_id.in_(delete_ids))
        .where(LineItemTag.deleted_at.is_(None))
        .distinct()
    )

    added = 0
    for tag_id in source_result.scalars():
        mapping = keep_mappings.get(tag_id)
        if mapping is None:
            db.add(LineItemTag(line_item_id=keep_id, tag_id=tag_id))
            added += 1
        elif mapping.deleted_at is not None:
            mapping.deleted_at = None
            added += 1

    await db.flush()
    return added


async def _repoint_links(db: AsyncSession, keep: LineItem, delete_ids: list[int]) -> tuple[int, int]:
    """Move active links off the merged rows onto ``keep``.

    Returns ``(repointed, retired)``. ``keep`` takes over the role the merged
    row had, so a merged parent stays the parent and a merged child stays the
    child. Duplicates share a date, which keeps ``parent.date <= child.date``.
    A link that would point at itself, repeat an existing active pair, give
    its child a second parent or overfill its parent is retired
    (soft-deleted) rather than moved. A retired link between two members of
    the group still references a removed row, so the foreign key cascade
    deletes it together with that row; its history is not kept.
    """
    merged = set(delete_ids)
    repointed = retired = 0

    for link in await link_store.get_active_links_touching(db, delete_ids, for_update=True):
        parent_id = keep.id if link.parent_t_id in merged else link.parent_t_id
        child_id = keep.id if link.child_t_id in merged else link.child_t_id

        reason = None
        if parent_id == child_id:
            reason = "self_link"
        elif await link_store.find_blocking_link(db, parent_id, child_id, exclude_link_id=link.id):
            reason = "conflicting_link"
        else:
            parent = keep if parent_id == keep.id else await db.get(LineItem, parent_id)
            child = keep if child_id == keep.id else await db.get(LineItem, child_id)
            linked = await link_store.active_children_amount(db, parent.id, exclude_link_id=link.id)
            if not has_capacity(parent, linked, child):
                reason = "capacity_exceeded"

        if reason:
            await link_store.soft_delete_link(db, link)
            retired += 1
            logger.info(
                "Link retired during merge",
                link_id=link.id,
                parent_t_id=link.parent_t_id,
                child_t_id=link.child_t_id,
                keep_id=keep.id,
                reason=reason,
            )
            continue

        link.parent_t_id = parent_id
        link.child_t_id = child_id
        await db.flush()
        repointed += 1

    return repointed, retired


async def _repoint_link_history(db: AsyncSession, keep_id: int, delete_ids: list[int]) -> None:
    """Keep unlinked history rows attached to the survivor instead of cascading them away."""
    merge_set = [keep_id, *delete_ids]
    await db.execute(
        update(LineItemLink)
        .where(
            and_(
                LineItemLink.deleted_at.is_not(None),
                LineItemLink.parent_t_id.in_(delete_ids),
                LineItemLink.child_t_id.not_in(merge_set),
            )
        )
        .values(parent_t_id=keep_id)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(LineItemLink)
        .where(
            and_(
                LineItemLink.deleted_at.is_not(None),
                LineItemLink.child_t_id.in_(delete_ids),
                LineItemLink.parent_t_id.not_in(merge_set),
            )
        )
        .values(child_t_id=keep_id)
        .execution_options(synchronize_session=False)
    )


async def merge_duplicates(
    db: AsyncSession,
    user_id: UUID,
    account_id: UUID,
    merges: Sequence[MergeInstruction],
) -> MergeResult:
    """Apply merge instructions for one account.

    Every instruction runs in the caller's transaction; the caller commits
    once at the end. An instruction with any row missing from the account
    since the scan is skipped whole and reported without aborting the rest
    of the batch.
    """
    await get_owned_account(db, user_id, account_id)
    result = MergeResult()

    async with async_log_timing(
        "merge_duplicates",
        logger=logger,
        account_id=str(account_id),
        instructions=len(merges),
    ) as timing:
        for instruction in merges:
            delete_ids = sorted(set(instruction.delete_ids) - {instruction.keep_id})
            if not delete_ids:
                result.skipped.append(
                    SkippedMerge(instruction.keep_id, list(instruction.delete_ids), "nothing_to_delete")
                )
                continue

            rows = await _lock_rows(db, account_id, [instruction.keep_id, *delete_ids])
            keep = rows.get(instruction.keep_id)
            missing_ids = [i for i in delete_ids if i not in rows]
            if keep is None or missing_ids:
                reason = "keep_not_found" if keep is None else "delete_rows_not_found"
                logger.info(
                    "Merge instruction skipped",
                    keep_id=instruction.keep_id,
                    delete_ids=delete_ids,
                    missing_ids=missing_ids,
                    reason=reason,
                )
                result.skipped.append(SkippedMerge(instruction.keep_id, delete_ids, reason))
                continue

            result.tags_added += await _union_tags(db, keep.id, delete_ids)
            repointed, retired = await _repoint_links(db, keep, delete_ids)
            result.links_repointed += repointed
            result.links_retired += retired
            await _repoint_link_history(db, keep.id, delete_ids)

            await db.execute(delete(LineItemTag).where(LineItemTag.line_item_id.in_(delete_ids)))
            deleted = await db.execute(
                delete(LineItem).where(LineItem.id.in_(delete_ids)).where(LineItem.account_id == account_id)
            )
            result.merged_count += deleted.rowcount or 0
            await db.flush()

        timing.update(
            merged_count=result.merged_count,
            tags_added=result.tags_added,
            links_repointed=result.links_repointed,
            skipped=len(result.skipped),
        )

    return result
