"""Transfer linking API router."""

from fastapi import APIRouter, status

from ledger_match.database import write_transaction
from ledger_match.deps import CurrentUserId, DbSession
from ledger_match.logger import get_logger
from ledger_match.schemas import (
    LinkCandidatesResponse,
    LinkRequest,
    LinkResponse,
    TransactionLinksResponse,
    UnlinkRequest,
    UnlinkResponse,
)
from ledger_match.services import create_link, find_link_candidates, get_transaction_links, unlink

router = APIRouter(prefix="/transactions", tags=["links"])
logger = get_logger(__name__)


@router.get("/{transaction_id}/linkable", response_model=LinkCandidatesResponse)
async def list_link_candidates(
    transaction_id: int,
    db: DbSession,
    user_id: CurrentUserId,
) -> LinkCandidatesResponse:
    """Suggest transactions in other accounts that look like the other side of a transfer."""
    candidates = await find_link_candidates(db, user_id, transaction_id)
    return LinkCandidatesResponse.from_candidates(candidates)


@router.get("/{transaction_id}/links", response_model=TransactionLinksResponse)
async def show_links(
    transaction_id: int,
    db: DbSession,
    user_id: CurrentUserId,
) -> TransactionLinksResponse:
    links = await get_transaction_links(db, user_id, transaction_id)
    return TransactionLinksResponse.from_links(links)


@router.post("/links", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
async def link_transactions(
    payload: LinkRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> LinkResponse:
    """Link two transactions as a transfer.

    The earlier transaction (by date, then id) always becomes the parent.
    """
    async with write_transaction(db):
        result = await create_link(db, user_id, payload.parent_t_id, payload.child_t_id)
    return LinkResponse(
        parent_t_id=result.parent_t_id,
        child_t_id=result.child_t_id,
        linked_amount=result.linked_amount,
        parent_amount=result.parent_amount,
    )


@router.post("/{transaction_id}/unlink", response_model=UnlinkResponse)
async def unlink_transactions(
    transaction_id: int,
    payload: UnlinkRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> UnlinkResponse:
    async with write_transaction(db):
        await unlink(db, user_id, transaction_id, payload.linked_t_id)
    logger.debug("Unlink committed", transaction_id=transaction_id, linked_t_id=payload.linked_t_id)
    return UnlinkResponse(success=True)
