"""Document extraction queue endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...errors import QueueItemNotFoundError
from ...schemas.extraction import ExtractionSubmitRequest, ExtractionSubmitResponse, QueueItemModel
from ...services.extraction import ExtractionQueue
from ..dependencies import get_extraction_queue, get_user_id

router = APIRouter(prefix="/extraction", tags=["extraction"])


@router.get("", response_model=List[QueueItemModel])
def list_queue(
    user_id: str = Depends(get_user_id),
    queue: ExtractionQueue = Depends(get_extraction_queue),
) -> List[QueueItemModel]:
    return [QueueItemModel.from_domain(item) for item in queue.list_items(user_id)]


@router.post("", response_model=ExtractionSubmitResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit(
    payload: ExtractionSubmitRequest,
    user_id: str = Depends(get_user_id),
    queue: ExtractionQueue = Depends(get_extraction_queue),
) -> ExtractionSubmitResponse:
    queue_id = await queue.submit(user_id, payload.file_ids, payload.file_name)
    return ExtractionSubmitResponse(queue_id=queue_id)


@router.delete("/{queue_id}", status_code=status.HTTP_204_NO_CONTENT)
def dismiss(
    queue_id: str,
    user_id: str = Depends(get_user_id),
    queue: ExtractionQueue = Depends(get_extraction_queue),
) -> Response:
    try:
        queue.dismiss(user_id, queue_id)
    except QueueItemNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
