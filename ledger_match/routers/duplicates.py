"""Duplicate detection and merge API router."""

from uuid import UUID

from fastapi import APIRouter, Query

from ledger_match.database import write_transaction
from ledger_match.deps import CurrentUserId, DbSession
from ledger_match.schemas import DuplicateScanResponse, MergeRequest, MergeResponse, ResetVerificationResponse
from ledger_match.services import find_duplicates, merge_duplicates, reset_duplicate_verification

router = APIRouter(prefix="/accounts/{account_id}/duplicates", tags=["duplicates"])

YearQuery = Query(None, ge=1900, le=2999, description="Restrict to one calendar year")


@router.get("", response_model=DuplicateScanResponse)
async def list_duplicates(
    account_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
    year: int | None = YearQuery,
) -> DuplicateScanResponse:
    """Find duplicate groups in an account.

    Items confirmed unique by a complete scan are remembered and skipped by
    later scans; use the reset endpoint to scan everything again.
    """
    async with write_transaction(db):
        scan = await find_duplicates(db, user_id, account_id, year=year)
    return DuplicateScanResponse.from_scan(scan)


@router.post("/reset", response_model=ResetVerificationResponse)
async def reset_verification(
    account_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
    year: int | None = YearQuery,
) -> ResetVerificationResponse:
    """Forget earlier "not a duplicate" results for an account."""
    async with write_transaction(db):
        reset_count = await reset_duplicate_verification(db, user_id, account_id, year=year)
    return ResetVerificationResponse(reset_count=reset_count)


@router.post("/merge", response_model=MergeResponse)
async def merge(
    account_id: UUID,
    payload: MergeRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> MergeResponse:
    """Merge confirmed duplicate groups into their kept line item."""
    async with write_transaction(db):
        result = await merge_duplicates(
            db,
            user_id,
            account_id,
            [instruction.to_instruction() for instruction in payload.merges],
        )
    return MergeResponse.from_result(result)
