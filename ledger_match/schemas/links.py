"""Schemas for transfer links."""

from decimal import Decimal

from pydantic import BaseModel, Field

from ledger_match.schemas.line_items import LineItemResponse
from ledger_match.services.link_candidates import LinkCandidates
from ledger_match.services.linking import LinkedItem, TransactionLinks


class AccountLineItemResponse(LineItemResponse):
    account_name: str

    @classmethod
    def from_linked(cls, linked: LinkedItem) -> "AccountLineItemResponse":
        return cls(
            **LineItemResponse.model_validate(linked.line_item).model_dump(),
            account_name=linked.account_name,
        )


class LinkCandidateResponse(AccountLineItemResponse):
    amount_difference: Decimal


class LinkCandidatesResponse(BaseModel):
    source_transaction: LineItemResponse
    potential_matches: list[LinkCandidateResponse]
    linked_amount: Decimal
    linking_allowed: bool

    @classmethod
    def from_candidates(cls, candidates: LinkCandidates) -> "LinkCandidatesResponse":
        return cls(
            source_transaction=LineItemResponse.model_validate(candidates.source),
            potential_matches=[
                LinkCandidateResponse(
                    **LineItemResponse.model_validate(match.line_item).model_dump(),
                    account_name=match.account_name,
                    amount_difference=match.amount_difference,
                )
                for match in candidates.matches
            ],
            linked_amount=candidates.linked_amount,
            linking_allowed=candidates.linking_allowed,
        )


class LinkRequest(BaseModel):
    """Ids to link; the stored direction is decided by date then id."""

    parent_t_id: int = Field(..., gt=0)
    child_t_id: int = Field(..., gt=0)


class LinkResponse(BaseModel):
    parent_t_id: int
    child_t_id: int
    linked_amount: Decimal
    parent_amount: Decimal


class UnlinkRequest(BaseModel):
    linked_t_id: int = Field(..., gt=0)


class UnlinkResponse(BaseModel):
    success: bool


class TransactionLinksResponse(BaseModel):
    transaction: LineItemResponse
    parent: AccountLineItemResponse | None
    children: list[AccountLineItemResponse]
    linked_amount: Decimal
    linking_allowed: bool

    @classmethod
    def from_links(cls, links: TransactionLinks) -> "TransactionLinksResponse":
        return cls(
            transaction=LineItemResponse.model_validate(links.line_item),
            parent=AccountLineItemResponse.from_linked(links.parent) if links.parent else None,
            children=[AccountLineItemResponse.from_linked(child) for child in links.children],
            linked_amount=links.linked_amount,
            linking_allowed=links.linking_allowed,
        )
