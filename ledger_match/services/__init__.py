"""Services package."""

from ledger_match.services.duplicates import (
    DuplicateGroup,
    DuplicateScanResult,
    build_key_index,
    find_duplicates,
    reset_duplicate_verification,
    resolve_groups,
)
from ledger_match.services.errors import (
    AlreadyLinkedError,
    ChildAlreadyLinkedError,
    LinkCapacityExceededError,
    MatchingError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from ledger_match.services.link_candidates import LinkCandidates, find_link_candidates
from ledger_match.services.linking import (
    LinkResult,
    TransactionLinks,
    create_link,
    get_transaction_links,
    normalize_link,
    unlink,
)
from ledger_match.services.merge import MergeInstruction, MergeResult, merge_duplicates

__all__ = [
    "AlreadyLinkedError",
    "ChildAlreadyLinkedError",
    "DuplicateGroup",
    "DuplicateScanResult",
    "LinkCandidates",
    "LinkCapacityExceededError",
    "LinkResult",
    "MatchingError",
    "MergeInstruction",
    "MergeResult",
    "NotFoundError",
    "StoreError",
    "TransactionLinks",
    "ValidationError",
    "build_key_index",
    "create_link",
    "find_duplicates",
    "find_link_candidates",
    "get_transaction_links",
    "merge_duplicates",
    "normalize_link",
    "reset_duplicate_verification",
    "resolve_groups",
    "unlink",
]
