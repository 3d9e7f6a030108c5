"""Job store contract shared by the Supabase and in-memory backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

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


class JobStore(ABC):
    """Persistent records for jobs, users, payments, receipts and route totals.

    Every method is scoped to one user; a job owned by someone else behaves
    exactly like a missing one. Returned objects are snapshots, so mutating
    them never changes stored state.
    """

    # --- jobs -------------------------------------------------------------

    @abstractmethod
    async def list_jobs(self, user_id: str, status: Optional[str] = None) -> list[Job]:
        """Jobs for ``user_id``, newest first, optionally filtered by status."""

    async def list_pending_jobs(self, user_id: str) -> list[Job]:
        return await self.list_jobs(user_id, status="pending")

    async def list_selected_jobs(self, user_id: str) -> list[Job]:
        """Jobs currently selected for the route, in route order."""
        jobs = [job for job in await self.list_jobs(user_id) if job.selected_for_route]
        return sorted(jobs, key=lambda job: (job.route_order is None, job.route_order or 0))

    @abstractmethod
    async def get_job(self, user_id: str, job_id: str) -> Job:
        """Return the job or raise :class:`JobNotFoundError`."""

    @abstractmethod
    async def create_job(self, job: Job) -> Job:
        ...

    @abstractmethod
    async def update_job(self, user_id: str, job_id: str, **fields: Any) -> Job:
        ...

    @abstractmethod
    async def delete_job(self, user_id: str, job_id: str) -> None:
        """Delete the job together with its payments and receipts."""

    async def update_coordinates(self, user_id: str, job_id: str, coordinates: Coordinates) -> Job:
        return await self.update_job(user_id, job_id, coordinates=coordinates)

    # --- route state ------------------------------------------------------

    @abstractmethod
    async def batch_update_route_selection(self, user_id: str, selections: Sequence[RouteSelection]) -> None:
        ...

    @abstractmethod
    async def batch_update_route_metrics(self, user_id: str, updates: Sequence[StopMetricsUpdate]) -> None:
        ...

    async def update_route_order(self, user_id: str, ordered_job_ids: Sequence[str]) -> None:
        await self.batch_update_route_selection(
            user_id,
            [RouteSelection(job_id=job_id, selected=True, route_order=index) for index, job_id in enumerate(ordered_job_ids)],
        )

    @abstractmethod
    async def get_route_totals(self, user_id: str) -> Optional[RouteTotals]:
        ...

    @abstractmethod
    async def update_route_totals(self, user_id: str, totals: RouteTotals) -> None:
        ...

    @abstractmethod
    async def delete_route_totals(self, user_id: str) -> None:
        ...

    async def commit_route(
        self,
        user_id: str,
        selections: Sequence[RouteSelection],
        metrics: Sequence[StopMetricsUpdate],
        totals: Optional[RouteTotals],
    ) -> None:
        """Write selection, per-stop metrics and totals as one logical unit.

        The base implementation issues the writes in that order; backends
        that can do better override it. Totals are written last so a crash in
        between leaves a state that re-running the same request repairs.
        """
        await self.batch_update_route_selection(user_id, selections)
        if metrics:
            await self.batch_update_route_metrics(user_id, metrics)
        if totals is None:
            await self.delete_route_totals(user_id)
        else:
            await self.update_route_totals(user_id, totals)

    async def clear_route(self, user_id: str) -> None:
        """Deselect every selected job, drop its metrics and delete the totals."""
        selected = [job for job in await self.list_jobs(user_id) if job.selected_for_route]
        await self.batch_update_route_selection(
            user_id,
            [RouteSelection(job_id=job.job_id, selected=False) for job in selected],
        )
        await self.batch_update_route_metrics(
            user_id,
            [StopMetricsUpdate(job_id=job.job_id, metrics=None) for job in selected],
        )
        await self.delete_route_totals(user_id)

    # --- users ------------------------------------------------------------

    @abstractmethod
    async def get_user(self, user_id: str) -> User:
        """Return the user, creating an empty record on first access."""

    @abstractmethod
    async def update_home_address(
        self, user_id: str, address: str, coordinates: Optional[Coordinates]
    ) -> User:
        ...

    @abstractmethod
    async def update_settings(self, user_id: str, theme: Theme) -> User:
        ...

    # --- payments and receipts --------------------------------------------

    @abstractmethod
    async def create_payment(self, payment: Payment) -> Payment:
        ...

    @abstractmethod
    async def list_payments(self, user_id: str, job_id: str) -> list[Payment]:
        """Payments recorded for one job, oldest first."""

    @abstractmethod
    async def get_payment(self, user_id: str, payment_id: str) -> Payment:
        """Return the payment or raise :class:`RecordNotFoundError`."""

    @abstractmethod
    async def delete_payment(self, user_id: str, payment_id: str) -> None:
        ...

    @abstractmethod
    async def create_receipt(self, receipt: Receipt) -> Receipt:
        ...

    @abstractmethod
    async def list_receipts(self, user_id: str, job_id: str) -> list[Receipt]:
        """Receipts recorded for one job, oldest first."""

    @abstractmethod
    async def get_receipt(self, user_id: str, receipt_id: str) -> Receipt:
        """Return the receipt or raise :class:`RecordNotFoundError`."""

    @abstractmethod
    async def delete_receipt(self, user_id: str, receipt_id: str) -> None:
        ...
