"""Schemas for duplicate detection and merge."""

from pydantic import BaseModel, Field

from ledger_match.schemas.line_items import TaggedLineItemResponse
from ledger_match.services.duplicates import DuplicateScanResult
from ledger_match.services.merge import MergeInstruction, MergeResult


class DuplicateGroupResponse(BaseModel):
    key: str
    transactions: list[TaggedLineItemResponse]
    keep_id: int
    delete_ids: list[int]


class DuplicateScanResponse(BaseModel):
    groups: list[DuplicateGroupResponse]
    total: int = Field(..., description="Number of groups returned")
    marked_as_non_duplicate: int
    previously_marked_count: int
    truncated: bool

    @classmethod
    def from_scan(cls, scan: DuplicateScanResult) -> "DuplicateScanResponse":
        return cls(
            groups=[
                DuplicateGroupResponse(
                    key=group.key,
                    transactions=[TaggedLineItemResponse.from_line_item(item) for item in group.line_items],
                    keep_id=group.keep_id,
                    delete_ids=group.delete_ids,
                )
                for group in scan.groups
            ],
            total=scan.total,
            marked_as_non_duplicate=scan.marked_as_non_duplicate,
            previously_marked_count=scan.previously_marked_count,
            truncated=scan.truncated,
        )


class ResetVerificationResponse(BaseModel):
    reset_count: int


class MergeInstructionRequest(BaseModel):
    keep_id: int
    delete_ids: list[int] = Field(..., min_length=1)

    def to_instruction(self) -> MergeInstruction:
        return MergeInstruction(keep_id=self.keep_id, delete_ids=list(self.delete_ids))


class MergeRequest(BaseModel):
    merges: list[MergeInstructionRequest] = Field(..., min_length=1)


class SkippedMergeResponse(BaseModel):
    keep_id: int
    delete_ids: list[int]
    reason: str


class MergeResponse(BaseModel):
    merged_count: int
    tags_added: int
    links_repointed: int
    links_retired: int
    skipped: list[SkippedMergeResponse]

    @classmethod
    def from_result(cls, result: MergeResult) -> "MergeResponse":
        return cls(
            merged_count=result.merged_count,
            tags_added=result.tags_added,
            links_repointed=result.links_repointed,
            links_retired=result.links_retired,
            skipped=[
                SkippedMergeResponse(keep_id=s.keep_id, delete_ids=s.delete_ids, reason=s.reason)
                for s in result.skipped
            ],
        )
