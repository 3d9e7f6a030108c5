"""Supabase persistence for jobs, users, payments, receipts and route totals."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import asdict
from typing import Any, Optional, Sequence

from ..errors import JobNotFoundError, RecordNotFoundError
from ..models.domain import (
    Coordinates,
    Job,
    Payment,
    Receipt,
    RouteSelection,
    RouteTotals,
    StopMetrics,
    StopMetricsUpdate,
    Task,
    Theme,
    User,
    Weather,
)
from .store import JobStore

logger = logging.getLogger(__name__)

JOBS_TABLE = "jobs"
USERS_TABLE = "users"
TOTALS_TABLE = "route_totals"
PAYMENTS_TABLE = "payments"
RECEIPTS_TABLE = "receipts"


def _coordinates_from(lat: Any, lng: Any) -> Optional[Coordinates]:
    if lat is None or lng is None:
        return None
    return Coordinates(lat=float(lat), lng=float(lng))


def job_from_row(row: dict[str, Any]) -> Job:
    metrics = None
    if row.get("travel_time") is not None or row.get("distance") is not None:
        metrics = StopMetrics(
            travel_time=row.get("travel_time") or "",
            distance=row.get("distance") or "",
            travel_time_value=int(row.get("travel_time_value") or 0),
            distance_value=float(row.get("distance_value") or 0.0),
        )
    return Job(
        job_id=str(row["id"]),
        user_id=str(row["user_id"]),
        address=row.get("address") or "",
        coordinates=_coordinates_from(row.get("lat"), row.get("lng")),
        selected_for_route=bool(row.get("selected_for_route")),
        route_order=row.get("route_order") if row.get("selected_for_route") else None,
        metrics=metrics,
        status=row.get("status") or "pending",
        summary=row.get("summary"),
        tasks=[Task(**task) for task in (row.get("tasks") or [])],
        access_codes=list(row.get("access_codes") or []),
        due_date=row.get("due_date"),
        notes=row.get("notes"),
        source_file_ids=list(row.get("source_file_ids") or []),
        completed_on=row.get("completed_on"),
        paid_on=row.get("paid_on"),
        weather=Weather(**row["weather"]) if row.get("weather") else None,
        created_at=float(row.get("created_at") or 0.0),
    )


def _field_columns(name: str, value: Any) -> dict[str, Any]:
    """Map one Job attribute onto its table column(s)."""
    if name == "coordinates":
        return {"lat": value.lat if value else None, "lng": value.lng if value else None}
    if name == "metrics":
        if value is None:
            return {"travel_time": None, "distance": None, "travel_time_value": None, "distance_value": None}
        return {
            "travel_time": value.travel_time,
            "distance": value.distance,
            "travel_time_value": value.travel_time_value,
            "distance_value": value.distance_value,
        }
    if name == "weather":
        return {"weather": asdict(value) if value is not None else None}
    if name == "tasks":
        return {"tasks": [asdict(task) for task in value]}
    if name == "job_id":
        return {"id": value}
    return {name: value}


def job_to_row(job: Job) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for name in Job.__dataclass_fields__:
        row.update(_field_columns(name, getattr(job, name)))
    return row


def _select_jobs(client: Any, user_id: str, status: Optional[str]) -> list[dict[str, Any]]:
    query = client.table(JOBS_TABLE).select("*").eq("user_id", user_id)
    if status:
        query = query.eq("status", status)
    response = query.order("created_at", desc=True).execute()
    return response.data or []


def _select_job(client: Any, user_id: str, job_id: str) -> dict[str, Any]:
    response = client.table(JOBS_TABLE).select("*").eq("id", job_id).eq("user_id", user_id).limit(1).execute()
    if not response.data:
        raise JobNotFoundError(job_id)
    return response.data[0]


def _select_jobs_by_id(client: Any, user_id: str, job_ids: Sequence[str]) -> dict[str, Job]:
    if not job_ids:
        return {}
    response = client.table(JOBS_TABLE).select("*").eq("user_id", user_id).in_("id", list(job_ids)).execute()
    jobs = {str(row["id"]): job_from_row(row) for row in (response.data or [])}
    missing = [job_id for job_id in job_ids if job_id not in jobs]
    if missing:
        raise JobNotFoundError(missing[0])
    return jobs


def _upsert_jobs(client: Any, jobs: Sequence[Job]) -> None:
    if jobs:
        client.table(JOBS_TABLE).upsert([job_to_row(job) for job in jobs]).execute()


def _apply_route_writes(
    jobs: dict[str, Job],
    selections: Sequence[RouteSelection],
    metrics: Sequence[StopMetricsUpdate],
) -> None:
    for selection in selections:
        job = jobs[selection.job_id]
        job.selected_for_route = selection.selected
        job.route_order = selection.route_order if selection.selected else None
    for update in metrics:
        job = jobs[update.job_id]
        job.metrics = update.metrics
        if update.route_order is not None:
            job.route_order = update.route_order


def _write_totals(client: Any, user_id: str, totals: Optional[RouteTotals]) -> None:
    if totals is None:
        client.table(TOTALS_TABLE).delete().eq("user_id", user_id).execute()
    else:
        client.table(TOTALS_TABLE).upsert({"user_id": user_id, **asdict(totals)}).execute()


def _commit_route(
    client: Any,
    user_id: str,
    selections: Sequence[RouteSelection],
    metrics: Sequence[StopMetricsUpdate],
    totals: Optional[RouteTotals],
    write_totals: bool = True,
) -> None:
    job_ids = list(dict.fromkeys([s.job_id for s in selections] + [m.job_id for m in metrics]))
    jobs = _select_jobs_by_id(client, user_id, job_ids)
    _apply_route_writes(jobs, selections, metrics)
    # One upsert statement is applied atomically by PostgREST.
    _upsert_jobs(client, list(jobs.values()))
    if write_totals:
        _write_totals(client, user_id, totals)


class SupabaseJobStore(JobStore):
    """Job store backed by the Supabase tables listed in ``db/supabase.py``.

    The client is synchronous, so each call runs in a worker thread to keep
    the event loop free.
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    async def list_jobs(self, user_id: str, status: Optional[str] = None) -> list[Job]:
        rows = await asyncio.to_thread(_select_jobs, self.client, user_id, status)
        return [job_from_row(row) for row in rows]

    async def get_job(self, user_id: str, job_id: str) -> Job:
        return job_from_row(await asyncio.to_thread(_select_job, self.client, user_id, job_id))

    async def create_job(self, job: Job) -> Job:
        row = job_to_row(job)
        row["id"] = job.job_id or uuid.uuid4().hex
        row["created_at"] = job.created_at or time.time()
        response = await asyncio.to_thread(lambda: self.client.table(JOBS_TABLE).insert(row).execute())
        return job_from_row((response.data or [row])[0])

    async def update_job(self, user_id: str, job_id: str, **fields: Any) -> Job:
        unknown = set(fields) - set(Job.__dataclass_fields__) | ({"job_id", "user_id"} & set(fields))
        if unknown:
            raise ValueError(f"Unknown job fields: {', '.join(sorted(unknown))}")
        patch: dict[str, Any] = {}
        for name, value in fields.items():
            patch.update(_field_columns(name, value))

        def _update() -> dict[str, Any]:
            _select_job(self.client, user_id, job_id)
            self.client.table(JOBS_TABLE).update(patch).eq("id", job_id).eq("user_id", user_id).execute()
            return _select_job(self.client, user_id, job_id)

        return job_from_row(await asyncio.to_thread(_update))

    async def delete_job(self, user_id: str, job_id: str) -> None:
        def _delete() -> None:
            _select_job(self.client, user_id, job_id)
            for table in (RECEIPTS_TABLE, PAYMENTS_TABLE):
                self.client.table(table).delete().eq("job_id", job_id).eq("user_id", user_id).execute()
            self.client.table(JOBS_TABLE).delete().eq("id", job_id).eq("user_id", user_id).execute()

        await asyncio.to_thread(_delete)

    async def batch_update_route_selection(self, user_id: str, selections: Sequence[RouteSelection]) -> None:
        await asyncio.to_thread(_commit_route, self.client, user_id, selections, [], None, False)

    async def batch_update_route_metrics(self, user_id: str, updates: Sequence[StopMetricsUpdate]) -> None:
        await asyncio.to_thread(_commit_route, self.client, user_id, [], updates, None, False)

    async def commit_route(
        self,
        user_id: str,
        selections: Sequence[RouteSelection],
        metrics: Sequence[StopMetricsUpdate],
        totals: Optional[RouteTotals],
    ) -> None:
        await asyncio.to_thread(_commit_route, self.client, user_id, selections, metrics, totals)

    async def get_route_totals(self, user_id: str) -> Optional[RouteTotals]:
        response = await asyncio.to_thread(
            lambda: self.client.table(TOTALS_TABLE).select("*").eq("user_id", user_id).limit(1).execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return RouteTotals(
            total_distance=row["total_distance"],
            total_duration=row["total_duration"],
            total_distance_value=float(row["total_distance_value"]),
            total_duration_value=int(row["total_duration_value"]),
        )

    async def update_route_totals(self, user_id: str, totals: RouteTotals) -> None:
        await asyncio.to_thread(_write_totals, self.client, user_id, totals)

    async def delete_route_totals(self, user_id: str) -> None:
        await asyncio.to_thread(_write_totals, self.client, user_id, None)

    async def get_user(self, user_id: str) -> User:
        def _get_or_create() -> dict[str, Any]:
            response = self.client.table(USERS_TABLE).select("*").eq("id", user_id).limit(1).execute()
            if response.data:
                return response.data[0]
            row = {"id": user_id, "email": ""}
            self.client.table(USERS_TABLE).insert(row).execute()
            return row

        return _user_from_row(await asyncio.to_thread(_get_or_create))

    async def update_home_address(
        self, user_id: str, address: str, coordinates: Optional[Coordinates]
    ) -> User:
        row = {
            "id": user_id,
            "home_address": address,
            "home_lat": coordinates.lat if coordinates else None,
            "home_lng": coordinates.lng if coordinates else None,
        }
        response = await asyncio.to_thread(lambda: self.client.table(USERS_TABLE).upsert(row).execute())
        return _user_from_row((response.data or [row])[0])

    async def update_settings(self, user_id: str, theme: Theme) -> User:
        row = {"id": user_id, "theme": theme}
        response = await asyncio.to_thread(lambda: self.client.table(USERS_TABLE).upsert(row).execute())
        return _user_from_row((response.data or [row])[0])

    # --- payments and receipts --------------------------------------------

    async def _insert_record(self, table: str, record: Any, id_field: str) -> dict[str, Any]:
        row = _record_to_row(record, id_field)
        row["id"] = row["id"] or uuid.uuid4().hex
        row["created_at"] = row["created_at"] or time.time()

        def _insert() -> dict[str, Any]:
            _select_job(self.client, record.user_id, record.job_id)
            response = self.client.table(table).insert(row).execute()
            return (response.data or [row])[0]

        return await asyncio.to_thread(_insert)

    async def _records_for_job(self, table: str, user_id: str, job_id: str) -> list[dict[str, Any]]:
        response = await asyncio.to_thread(
            lambda: self.client.table(table)
            .select("*")
            .eq("user_id", user_id)
            .eq("job_id", job_id)
            .order("created_at")
            .execute()
        )
        return response.data or []

    async def _record(self, table: str, kind: str, user_id: str, record_id: str) -> dict[str, Any]:
        response = await asyncio.to_thread(
            lambda: self.client.table(table).select("*").eq("id", record_id).eq("user_id", user_id).limit(1).execute()
        )
        if not response.data:
            raise RecordNotFoundError(kind, record_id)
        return response.data[0]

    async def _delete_record(self, table: str, kind: str, user_id: str, record_id: str) -> None:
        await self._record(table, kind, user_id, record_id)
        await asyncio.to_thread(
            lambda: self.client.table(table).delete().eq("id", record_id).eq("user_id", user_id).execute()
        )

    async def create_payment(self, payment: Payment) -> Payment:
        return _payment_from_row(await self._insert_record(PAYMENTS_TABLE, payment, "payment_id"))

    async def list_payments(self, user_id: str, job_id: str) -> list[Payment]:
        return [_payment_from_row(row) for row in await self._records_for_job(PAYMENTS_TABLE, user_id, job_id)]

    async def get_payment(self, user_id: str, payment_id: str) -> Payment:
        return _payment_from_row(await self._record(PAYMENTS_TABLE, "payment", user_id, payment_id))

    async def delete_payment(self, user_id: str, payment_id: str) -> None:
        await self._delete_record(PAYMENTS_TABLE, "payment", user_id, payment_id)

    async def create_receipt(self, receipt: Receipt) -> Receipt:
        return _receipt_from_row(await self._insert_record(RECEIPTS_TABLE, receipt, "receipt_id"))

    async def list_receipts(self, user_id: str, job_id: str) -> list[Receipt]:
        return [_receipt_from_row(row) for row in await self._records_for_job(RECEIPTS_TABLE, user_id, job_id)]

    async def get_receipt(self, user_id: str, receipt_id: str) -> Receipt:
        return _receipt_from_row(await self._record(RECEIPTS_TABLE, "receipt", user_id, receipt_id))

    async def delete_receipt(self, user_id: str, receipt_id: str) -> None:
        await self._delete_record(RECEIPTS_TABLE, "receipt", user_id, receipt_id)


def _user_from_row(row: dict[str, Any]) -> User:
    return User(
        user_id=str(row["id"]),
        email=row.get("email") or "",
        name=row.get("name"),
        home_address=row.get("home_address"),
        home_coordinates=_coordinates_from(row.get("home_lat"), row.get("home_lng")),
        theme=row.get("theme"),
    )


def _record_to_row(record: Any, id_field: str) -> dict[str, Any]:
    row = asdict(record)
    row["id"] = row.pop(id_field)
    return row


def _payment_from_row(row: dict[str, Any]) -> Payment:
    return Payment(
        payment_id=str(row["id"]),
        user_id=str(row["user_id"]),
        job_id=str(row["job_id"]),
        image_id=row.get("image_id") or "",
        amount=float(row.get("amount") or 0.0),
        date=row.get("date") or "",
        payer_name=row.get("payer_name"),
        detected_address=row.get("detected_address"),
        created_at=float(row.get("created_at") or 0.0),
    )


def _receipt_from_row(row: dict[str, Any]) -> Receipt:
    return Receipt(
        receipt_id=str(row["id"]),
        user_id=str(row["user_id"]),
        job_id=str(row["job_id"]),
        image_id=row.get("image_id") or "",
        store_name=row.get("store_name") or "",
        total=float(row.get("total") or 0.0),
        date=row.get("date") or "",
        store_location=row.get("store_location"),
        summary=row.get("summary"),
        created_at=float(row.get("created_at") or 0.0),
    )
