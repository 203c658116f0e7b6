"""Line item response schemas."""

import datetime
from decimal import Decimal
from uuid import UUID

from ledger_match.models import LineItem
from ledger_match.schemas.base import BaseResponse


class TagResponse(BaseResponse):
    id: int
    label: str
    color: str | None = None


class LineItemResponse(BaseResponse):
    id: int
    account_id: UUID
    date: datetime.date
    quantity: Decimal | None = None
    amount: Decimal
    symbol: str | None = None
    balance_after: Decimal | None = None
    description: str | None = None
    memo: str | None = None
    verified_not_duplicate: bool


class TaggedLineItemResponse(LineItemResponse):
    """Line item with its active tags; the tag mappings must already be loaded."""

    tags: list[TagResponse]

    @classmethod
    def from_line_item(cls, item: LineItem) -> "TaggedLineItemResponse":
        return cls(
            **LineItemResponse.model_validate(item).model_dump(),
            tags=[TagResponse.model_validate(tag) for tag in item.active_tags],
        )
