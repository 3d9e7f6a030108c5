"""Background queue that turns uploaded scope-of-work documents into jobs."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Protocol, Sequence

from ..errors import QueueItemNotFoundError
from ..models.domain import Task
from ..persistence.store import JobStore
from .jobs.service import create_job

logger = logging.getLogger(__name__)

QueueStatus = Literal["queued", "processing", "failed"]


@dataclass(slots=True)
class ExtractedJob:
    """Structured output of the document extractor."""

    property_address: Optional[str]
    job_summary: Optional[str] = None
    tasks: list[dict[str, Any]] = field(default_factory=list)
    access_codes: list[str] = field(default_factory=list)
    target_completion_date: Optional[str] = None


class JobExtractor(Protocol):
    async def extract(self, file_ids: Sequence[str]) -> ExtractedJob:
        ...


class UnconfiguredExtractor:
    async def extract(self, file_ids: Sequence[str]) -> ExtractedJob:
        raise RuntimeError("Document extraction is not configured.")


@dataclass(slots=True)
class QueueItem:
    queue_id: str
    user_id: str
    file_ids: list[str]
    file_name: str
    status: QueueStatus = "queued"
    error: Optional[str] = None
    created_at: float = field(default_factory=time.time)


def build_tasks(raw_tasks: Sequence[dict[str, Any]], now_ms: Optional[int] = None) -> list[Task]:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    tasks: list[Task] = []
    for index, raw in enumerate(raw_tasks):
        quantity = raw.get("quantity")
        materials = raw.get("materials_needed")
        tools = raw.get("tools_needed")
        tasks.append(
            Task(
                id=f"task-{index}-{stamp}",
                task_name=raw.get("task_name") or "",
                category=raw.get("category") or "General",
                specific_instructions=raw.get("specific_instructions") or None,
                quantity=quantity if isinstance(quantity, (int, float)) and not isinstance(quantity, bool) else None,
                unit=raw.get("unit") or None,
                materials=list(materials) if isinstance(materials, list) else [],
                tools=list(tools) if isinstance(tools, list) else [],
                requires_online_order=bool(raw.get("requires_online_order")),
            )
        )
    return tasks


class ExtractionQueue:
    """Fire-and-forget handoff to the document extractor.

    ``submit`` records a queued item and schedules processing on the running
    event loop. A successful run creates a pending job and removes the item;
    a failed one stays listed as ``failed`` until the user dismisses it.
    """

    def __init__(self, store: JobStore, extractor: JobExtractor, geocoder: Any = None) -> None:
        self.store = store
        self.extractor = extractor
        self.geocoder = geocoder
        self._items: dict[str, QueueItem] = {}
        self._tasks: set[asyncio.Task] = set()

    async def submit(self, user_id: str, file_ids: Sequence[str], file_name: str) -> str:
        item = QueueItem(queue_id=uuid.uuid4().hex, user_id=user_id, file_ids=list(file_ids), file_name=file_name)
        self._items[item.queue_id] = item
        task = asyncio.get_running_loop().create_task(self.process(item.queue_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(f"Queued '{file_name}' ({len(item.file_ids)} files) for {user_id}")
        return item.queue_id

    async def join(self) -> None:
        """Wait for every scheduled item to finish processing."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def process(self, queue_id: str) -> None:
        item = self._items.get(queue_id)
        if item is None:
            logger.warning(f"Queue item {queue_id} vanished before processing")
            return
        item.status = "processing"
        try:
            if not item.file_ids:
                raise ValueError("No images found in storage")
            extracted = await self.extractor.extract(item.file_ids)
            if not extracted.property_address:
                raise ValueError("Could not extract property address from the document.")

            await create_job(
                self.store,
                item.user_id,
                extracted.property_address,
                geocoder=self.geocoder,
                summary=extracted.job_summary,
                tasks=build_tasks(extracted.tasks),
                access_codes=extracted.access_codes,
                due_date=extracted.target_completion_date,
                source_file_ids=item.file_ids,
            )
        except Exception as exc:
            logger.error(f"Processing '{item.file_name}' failed: {exc}")
            item.status = "failed"
            item.error = str(exc) or "Unknown processing error"
            return
        self._items.pop(queue_id, None)

    def list_items(self, user_id: str) -> list[QueueItem]:
        items = [item for item in self._items.values() if item.user_id == user_id]
        return sorted(items, key=lambda item: item.created_at, reverse=True)

    def get(self, user_id: str, queue_id: str) -> QueueItem:
        item = self._items.get(queue_id)
        if item is None or item.user_id != user_id:
            raise QueueItemNotFoundError(queue_id)
        return item

    def dismiss(self, user_id: str, queue_id: str) -> None:
        self.get(user_id, queue_id)
        del self._items[queue_id]
