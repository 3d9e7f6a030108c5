"""Job service helpers."""

from .service import (
    create_job,
    geocode_best_effort,
    job_stats,
    reorder_tasks,
    update_job,
    update_status,
    update_task,
)

__all__ = [
    "create_job",
    "geocode_best_effort",
    "job_stats",
    "reorder_tasks",
    "update_job",
    "update_status",
    "update_task",
]
