import asyncio

import pytest

from src.fieldroute.errors import QueueItemNotFoundError
from src.fieldroute.models.domain import Coordinates
from src.fieldroute.persistence.memory import InMemoryJobStore
from src.fieldroute.services.extraction import (
    ExtractedJob,
    ExtractionQueue,
    UnconfiguredExtractor,
    build_tasks,
)

USER = "user-1"


class StubExtractor:
    def __init__(self, extracted):
        self.extracted = extracted
        self.calls = []

    async def extract(self, file_ids):
        self.calls.append(list(file_ids))
        return self.extracted


class StubGeocoder:
    async def geocode(self, address):
        return Coordinates(40.0, -74.0)


def test_build_tasks_normalizes_raw_items():
    tasks = build_tasks(
        [
            {"task_name": "Paint trim", "quantity": 3, "unit": "rooms", "materials_needed": ["paint"]},
            {"task_name": "Haul debris", "category": "Cleanup", "quantity": True, "requires_online_order": 1},
        ],
        now_ms=1700000000000,
    )

    assert [task.id for task in tasks] == ["task-0-1700000000000", "task-1-1700000000000"]
    assert tasks[0].category == "General"
    assert tasks[0].quantity == 3
    assert tasks[0].materials == ["paint"]
    assert tasks[1].category == "Cleanup"
    assert tasks[1].quantity is None
    assert tasks[1].requires_online_order is True
    assert all(task.completed is False for task in tasks)


def test_successful_extraction_creates_a_job_and_removes_the_item():
    store = InMemoryJobStore()
    extractor = StubExtractor(
        ExtractedJob(
            property_address="12 Elm St",
            job_summary="Turnover clean",
            tasks=[{"task_name": "Clean oven"}],
            access_codes=["Lockbox 1234"],
            target_completion_date="2024-05-01",
        )
    )
    queue = ExtractionQueue(store, extractor, geocoder=StubGeocoder())

    async def scenario():
        queue_id = await queue.submit(USER, ["file-1", "file-2"], "scope.pdf")
        await queue.join()
        return queue_id, await store.list_jobs(USER)

    queue_id, jobs = asyncio.run(scenario())

    assert extractor.calls == [["file-1", "file-2"]]
    assert queue.list_items(USER) == []
    with pytest.raises(QueueItemNotFoundError):
        queue.get(USER, queue_id)
    assert len(jobs) == 1
    job = jobs[0]
    assert job.address == "12 Elm St"
    assert job.coordinates == Coordinates(40.0, -74.0)
    assert job.access_codes == ["Lockbox 1234"]
    assert job.due_date == "2024-05-01"
    assert job.source_file_ids == ["file-1", "file-2"]
    assert job.tasks[0].id.startswith("task-0-")
    assert job.tasks[0].category == "General"


def test_missing_address_marks_item_failed():
    store = InMemoryJobStore()
    queue = ExtractionQueue(store, StubExtractor(ExtractedJob(property_address=None)))

    async def scenario():
        queue_id = await queue.submit(USER, ["file-1"], "blurry.jpg")
        await queue.join()
        return queue_id

    queue_id = asyncio.run(scenario())

    item = queue.get(USER, queue_id)
    assert item.status == "failed"
    assert item.error == "Could not extract property address from the document."
    assert asyncio.run(store.list_jobs(USER)) == []


def test_unconfigured_extractor_fails_items():
    queue = ExtractionQueue(InMemoryJobStore(), UnconfiguredExtractor())

    async def scenario():
        queue_id = await queue.submit(USER, ["file-1"], "scope.pdf")
        await queue.join()
        return queue_id

    item = queue.get(USER, asyncio.run(scenario()))

    assert item.error == "Document extraction is not configured."


def test_failed_items_are_private_and_dismissable():
    queue = ExtractionQueue(InMemoryJobStore(), StubExtractor(ExtractedJob(property_address="")))

    async def scenario():
        queue_id = await queue.submit(USER, ["file-1"], "scope.pdf")
        await queue.join()
        return queue_id

    queue_id = asyncio.run(scenario())

    assert queue.list_items("someone-else") == []
    with pytest.raises(QueueItemNotFoundError):
        queue.dismiss("someone-else", queue_id)
    queue.dismiss(USER, queue_id)
    assert queue.list_items(USER) == []
