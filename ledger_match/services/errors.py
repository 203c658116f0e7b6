"""Error taxonomy shared by the duplicate and linking services.

Every error carries a stable machine-readable ``kind`` which the HTTP layer
returns alongside the human-readable message.
"""


class MatchingError(Exception):
    """Base exception for matching engine errors."""

    kind = "matching_error"
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(MatchingError):
    """Referenced line item or account is missing or not owned by the caller."""

    kind = "not_found"


class AlreadyLinkedError(MatchingError):
    """An active link already exists between the two line items."""

    kind = "already_linked"


class ChildAlreadyLinkedError(MatchingError):
    """The would-be child already has an active parent."""

    kind = "child_already_linked"


class LinkCapacityExceededError(MatchingError):
    """Linking would make the children meet or exceed the parent amount."""

    kind = "link_capacity_exceeded"


class ValidationError(MatchingError):
    """Request is well-formed JSON but semantically invalid."""

    kind = "validation_error"


class StoreError(MatchingError):
    """Underlying persistence failure; the operation was rolled back."""

    kind = "store_error"
    retryable = True
