"""Document extraction queue schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..services.extraction import QueueItem


class ExtractionSubmitRequest(BaseModel):
    file_ids: List[str] = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)


class ExtractionSubmitResponse(BaseModel):
    queue_id: str


class QueueItemModel(BaseModel):
    queue_id: str
    file_name: str
    file_ids: List[str]
    status: Literal["queued", "processing", "failed"]
    error: Optional[str] = None
    created_at: float

    @classmethod
    def from_domain(cls, item: QueueItem) -> "QueueItemModel":
        return cls(
            queue_id=item.queue_id,
            file_name=item.file_name,
            file_ids=list(item.file_ids),
            status=item.status,
            error=item.error,
            created_at=item.created_at,
        )
