"""Job lifecycle helpers shared by the API and the extraction queue."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from ...errors import GatewayError
from ...models.domain import JOB_STATUSES, Coordinates, Job, Task
from ...persistence.store import JobStore

logger = logging.getLogger(__name__)

# Fields a client may edit directly; route state is owned by the orchestrator.
EDITABLE_FIELDS = frozenset(
    {"address", "summary", "tasks", "access_codes", "due_date", "notes", "coordinates"}
)


def _today() -> date:
    return datetime.now(timezone.utc).date()


async def geocode_best_effort(geocoder: Any, address: str) -> Optional[Coordinates]:
    """Geocode once; an unreachable or unconfigured backend yields None."""
    if geocoder is None or not address.strip():
        return None
    try:
        return await geocoder.geocode(address)
    except GatewayError as exc:
        logger.warning(f"Skipping geocode for '{address}': {exc}")
        return None


async def create_job(
    store: JobStore,
    user_id: str,
    address: str,
    *,
    geocoder: Any = None,
    coordinates: Optional[Coordinates] = None,
    summary: Optional[str] = None,
    tasks: Iterable[Task] = (),
    access_codes: Iterable[str] = (),
    due_date: Optional[str] = None,
    notes: Optional[str] = None,
    source_file_ids: Iterable[str] = (),
) -> Job:
    """Create a pending, unselected job, geocoding its address when no coordinates are given."""
    if coordinates is None:
        coordinates = await geocode_best_effort(geocoder, address)
    job = Job(
        job_id="",
        user_id=user_id,
        address=address,
        coordinates=coordinates,
        summary=summary,
        tasks=list(tasks),
        access_codes=list(access_codes),
        due_date=due_date,
        notes=notes,
        source_file_ids=list(source_file_ids),
    )
    created = await store.create_job(job)
    logger.info(f"Created job {created.job_id} at '{address}' (geocoded={coordinates is not None})")
    return created


async def update_job(store: JobStore, user_id: str, job_id: str, **fields: Any) -> Job:
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
    current = await store.get_job(user_id, job_id)
    # Cached coordinates belong to the old address.
    if "address" in fields and fields["address"] != current.address and "coordinates" not in fields:
        fields["coordinates"] = None
    return await store.update_job(user_id, job_id, **fields)


async def update_status(
    store: JobStore,
    user_id: str,
    job_id: str,
    status: str,
    today: Optional[date] = None,
) -> Job:
    """Move a job to ``status``, stamping the completion or payment date the first time."""
    if status not in JOB_STATUSES:
        raise ValueError(f"Unknown job status '{status}'. Expected one of {', '.join(JOB_STATUSES)}.")
    job = await store.get_job(user_id, job_id)
    stamp = (today or _today()).isoformat()
    updates: dict[str, Any] = {"status": status}
    if status == "completed" and not job.completed_on:
        updates["completed_on"] = stamp
    elif status == "paid" and not job.paid_on:
        updates["paid_on"] = stamp
    return await store.update_job(user_id, job_id, **updates)


async def update_task(store: JobStore, user_id: str, job_id: str, task_id: str, completed: bool) -> Job:
    job = await store.get_job(user_id, job_id)
    for task in job.tasks:
        if task.id == task_id:
            task.completed = completed
    return await store.update_job(user_id, job_id, tasks=job.tasks)


async def reorder_tasks(store: JobStore, user_id: str, job_id: str, task_ids: Sequence[str]) -> Job:
    """Reorder tasks to match ``task_ids``; tasks not listed are dropped."""
    job = await store.get_job(user_id, job_id)
    by_id = {task.id: task for task in job.tasks}
    tasks = [by_id[task_id] for task_id in task_ids if task_id in by_id]
    return await store.update_job(user_id, job_id, tasks=tasks)


async def job_stats(store: JobStore, user_id: str) -> dict[str, int]:
    counts = Counter(job.status for job in await store.list_jobs(user_id))
    return {status: counts.get(status, 0) for status in JOB_STATUSES}
