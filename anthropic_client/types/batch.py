"""
anthropic-client - Message Batch Types
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .codec import OpenEnum, UnknownVariant, tagged_union
from .message import ErrorResponse, Message


class BatchProcessingStatus(OpenEnum):
    pass


BatchProcessingStatus.IN_PROGRESS = BatchProcessingStatus._member("in_progress")
BatchProcessingStatus.CANCELING = BatchProcessingStatus._member("canceling")
BatchProcessingStatus.ENDED = BatchProcessingStatus._member("ended")


class BatchRequestCounts(BaseModel):
    processing: int = 0
    succeeded: int = 0
    errored: int = 0
    canceled: int = 0
    expired: int = 0


class MessageBatch(BaseModel):
    id: str
    type: str = "message_batch"
    processing_status: BatchProcessingStatus
    request_counts: BatchRequestCounts = Field(default_factory=BatchRequestCounts)
    created_at: str
    ended_at: Optional[str] = None
    expires_at: Optional[str] = None
    cancel_initiated_at: Optional[str] = None
    archived_at: Optional[str] = None
    results_url: Optional[str] = None


class DeletedMessageBatch(BaseModel):
    id: str
    type: str = "message_batch_deleted"


class BatchRequest(BaseModel):
    """One entry of a batch create call: a custom id plus message params."""

    custom_id: str
    params: Dict[str, Any]


# ============================================================
# Results (one JSON object per line of the results file)
# ============================================================

class SucceededResult(BaseModel):
    type: Literal["succeeded"] = "succeeded"
    message: Message


class ErroredResult(BaseModel):
    type: Literal["errored"] = "errored"
    error: ErrorResponse


class CanceledResult(BaseModel):
    type: Literal["canceled"] = "canceled"


class ExpiredResult(BaseModel):
    type: Literal["expired"] = "expired"


class UnknownResult(UnknownVariant):
    pass


BatchResultBody = tagged_union(
    SucceededResult,
    ErroredResult,
    CanceledResult,
    ExpiredResult,
    unknown=UnknownResult,
)


class BatchResult(BaseModel):
    custom_id: str
    result: BatchResultBody


def batch_requests(requests: List[Any]) -> List[Dict[str, Any]]:
    """Normalize ``BatchRequest`` models or plain dicts into wire dicts."""
    return [BatchRequest.model_validate(r).model_dump(mode="json") for r in requests]
