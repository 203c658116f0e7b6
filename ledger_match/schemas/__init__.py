"""Pydantic schemas for the HTTP API."""

from ledger_match.schemas.duplicates import (
    DuplicateGroupResponse,
    DuplicateScanResponse,
    MergeInstructionRequest,
    MergeRequest,
    MergeResponse,
    ResetVerificationResponse,
)
from ledger_match.schemas.line_items import LineItemResponse, TaggedLineItemResponse, TagResponse
from ledger_match.schemas.links import (
    LinkCandidatesResponse,
    LinkRequest,
    LinkResponse,
    TransactionLinksResponse,
    UnlinkRequest,
    UnlinkResponse,
)

__all__ = [
    "DuplicateGroupResponse",
    "DuplicateScanResponse",
    "LineItemResponse",
    "LinkCandidatesResponse",
    "LinkRequest",
    "LinkResponse",
    "MergeInstructionRequest",
    "MergeRequest",
    "MergeResponse",
    "ResetVerificationResponse",
    "TagResponse",
    "TaggedLineItemResponse",
    "TransactionLinksResponse",
    "UnlinkRequest",
    "UnlinkResponse",
]
