"""In-process job store used when Supabase is not configured, and in tests."""

from __future__ import annotations

import copy
import logging
import time
import uuid
from dataclasses import fields as dataclass_fields
from typing import Any, Optional, Sequence

from ..errors import JobNotFoundError, RecordNotFoundError
from ..models.domain import (
    Coordinates,
    Job,
    Payment,
    Receipt,
    RouteSelection,
    RouteTotals,
    StopMetricsUpdate,
    Theme,
    User,
)
from .store import JobStore

logger = logging.getLogger(__name__)

_JOB_FIELDS = {item.name for item in dataclass_fields(Job)} - {"job_id", "user_id"}


class InMemoryJobStore(JobStore):
    """Dictionary-backed store.

    Each call completes without yielding to the event loop, so every method,
    ``commit_route`` included, is atomic with respect to other coroutines.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._totals: dict[str, RouteTotals] = {}
        self._users: dict[str, User] = {}
        self._payments: dict[str, Payment] = {}
        self._receipts: dict[str, Receipt] = {}

    def _owned(self, user_id: str, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None or job.user_id != user_id:
            raise JobNotFoundError(job_id)
        return job

    # --- jobs -------------------------------------------------------------

    async def list_jobs(self, user_id: str, status: Optional[str] = None) -> list[Job]:
        jobs = [
            job
            for job in self._jobs.values()
            if job.user_id == user_id and (status is None or job.status == status)
        ]
        jobs.sort(key=lambda job: job.created_at, reverse=True)
        return copy.deepcopy(jobs)

    async def get_job(self, user_id: str, job_id: str) -> Job:
        return copy.deepcopy(self._owned(user_id, job_id))

    async def create_job(self, job: Job) -> Job:
        stored = copy.deepcopy(job)
        if not stored.job_id:
            stored.job_id = uuid.uuid4().hex
        if not stored.created_at:
            stored.created_at = time.time()
        self._jobs[stored.job_id] = stored
        return copy.deepcopy(stored)

    async def update_job(self, user_id: str, job_id: str, **fields: Any) -> Job:
        unknown = set(fields) - _JOB_FIELDS
        if unknown:
            raise ValueError(f"Unknown job fields: {', '.join(sorted(unknown))}")
        job = self._owned(user_id, job_id)
        for name, value in fields.items():
            setattr(job, name, copy.deepcopy(value))
        return copy.deepcopy(job)

    async def delete_job(self, user_id: str, job_id: str) -> None:
        self._owned(user_id, job_id)
        del self._jobs[job_id]
        for records in (self._payments, self._receipts):
            for record_id in [key for key, record in records.items() if record.job_id == job_id]:
                del records[record_id]

    # --- route state ------------------------------------------------------

    def _apply_selections(self, user_id: str, selections: Sequence[RouteSelection]) -> None:
        for selection in selections:
            job = self._owned(user_id, selection.job_id)
            job.selected_for_route = selection.selected
            job.route_order = selection.route_order if selection.selected else None

    def _apply_metrics(self, user_id: str, updates: Sequence[StopMetricsUpdate]) -> None:
        for update in updates:
            job = self._owned(user_id, update.job_id)
            job.metrics = update.metrics
            if update.route_order is not None:
                job.route_order = update.route_order

    def _check_ids(self, user_id: str, job_ids: Sequence[str]) -> None:
        for job_id in job_ids:
            self._owned(user_id, job_id)

    async def batch_update_route_selection(self, user_id: str, selections: Sequence[RouteSelection]) -> None:
        self._check_ids(user_id, [selection.job_id for selection in selections])
        self._apply_selections(user_id, selections)

    async def batch_update_route_metrics(self, user_id: str, updates: Sequence[StopMetricsUpdate]) -> None:
        self._check_ids(user_id, [update.job_id for update in updates])
        self._apply_metrics(user_id, updates)

    async def get_route_totals(self, user_id: str) -> Optional[RouteTotals]:
        return self._totals.get(user_id)

    async def update_route_totals(self, user_id: str, totals: RouteTotals) -> None:
        self._totals[user_id] = totals

    async def delete_route_totals(self, user_id: str) -> None:
        self._totals.pop(user_id, None)

    async def commit_route(
        self,
        user_id: str,
        selections: Sequence[RouteSelection],
        metrics: Sequence[StopMetricsUpdate],
        totals: Optional[RouteTotals],
    ) -> None:
        # Validate everything up front so a bad id leaves nothing half-written.
        self._check_ids(user_id, [selection.job_id for selection in selections])
        self._check_ids(user_id, [update.job_id for update in metrics])
        self._apply_selections(user_id, selections)
        self._apply_metrics(user_id, metrics)
        if totals is None:
            self._totals.pop(user_id, None)
        else:
            self._totals[user_id] = totals
        logger.debug(f"Committed route for {user_id}: {len(selections)} selections, {len(metrics)} metric rows")

    # --- users ------------------------------------------------------------

    async def get_user(self, user_id: str) -> User:
        user = self._users.setdefault(user_id, User(user_id=user_id))
        return copy.deepcopy(user)

    async def update_home_address(
        self, user_id: str, address: str, coordinates: Optional[Coordinates]
    ) -> User:
        user = self._users.setdefault(user_id, User(user_id=user_id))
        user.home_address = address
        user.home_coordinates = coordinates
        return copy.deepcopy(user)

    async def update_settings(self, user_id: str, theme: Theme) -> User:
        user = self._users.setdefault(user_id, User(user_id=user_id))
        user.theme = theme
        return copy.deepcopy(user)

    # --- payments and receipts --------------------------------------------

    @staticmethod
    def _stamped(record: Any, id_field: str) -> Any:
        stored = copy.deepcopy(record)
        if not getattr(stored, id_field):
            setattr(stored, id_field, uuid.uuid4().hex)
        if not stored.created_at:
            stored.created_at = time.time()
        return stored

    @staticmethod
    def _owned_record(records: dict[str, Any], kind: str, user_id: str, record_id: str) -> Any:
        record = records.get(record_id)
        if record is None or record.user_id != user_id:
            raise RecordNotFoundError(kind, record_id)
        return record

    @staticmethod
    def _for_job(records: dict[str, Any], user_id: str, job_id: str) -> list[Any]:
        found = [record for record in records.values() if record.user_id == user_id and record.job_id == job_id]
        found.sort(key=lambda record: record.created_at)
        return copy.deepcopy(found)

    async def create_payment(self, payment: Payment) -> Payment:
        self._owned(payment.user_id, payment.job_id)
        stored = self._stamped(payment, "payment_id")
        self._payments[stored.payment_id] = stored
        return copy.deepcopy(stored)

    async def list_payments(self, user_id: str, job_id: str) -> list[Payment]:
        return self._for_job(self._payments, user_id, job_id)

    async def get_payment(self, user_id: str, payment_id: str) -> Payment:
        return copy.deepcopy(self._owned_record(self._payments, "payment", user_id, payment_id))

    async def delete_payment(self, user_id: str, payment_id: str) -> None:
        self._owned_record(self._payments, "payment", user_id, payment_id)
        del self._payments[payment_id]

    async def create_receipt(self, receipt: Receipt) -> Receipt:
        self._owned(receipt.user_id, receipt.job_id)
        stored = self._stamped(receipt, "receipt_id")
        self._receipts[stored.receipt_id] = stored
        return copy.deepcopy(stored)

    async def list_receipts(self, user_id: str, job_id: str) -> list[Receipt]:
        return self._for_job(self._receipts, user_id, job_id)

    async def get_receipt(self, user_id: str, receipt_id: str) -> Receipt:
        return copy.deepcopy(self._owned_record(self._receipts, "receipt", user_id, receipt_id))

    async def delete_receipt(self, user_id: str, receipt_id: str) -> None:
        self._owned_record(self._receipts, "receipt", user_id, receipt_id)
        del self._receipts[receipt_id]
