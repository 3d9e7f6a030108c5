"""Route planning workflow: geocode gaps, optimize, reconcile and persist."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Literal, Optional, Protocol, Sequence

from ...errors import (
    GatewayError,
    GeocodingFailedError,
    JobsNotLoadedError,
    OptimizationFailedError,
    RoutePlanningError,
    SelectionUnavailableError,
)
from ...models.domain import (
    Coordinates,
    Job,
    RouteSelection,
    RouteTotals,
    StopMetrics,
    StopMetricsUpdate,
)
from ...persistence.store import JobStore
from ..location import LocationProvider, get_current_location
from ..routing.gateway import RouteOptimizationGateway
from ..routing.models import LegMetrics, Waypoint

logger = logging.getLogger(__name__)

NotificationLevel = Literal["success", "error", "info"]


class Geocoder(Protocol):
    async def geocode(self, address: str) -> Coordinates | None:
        ...


@dataclass(slots=True, frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    description: Optional[str] = None


@dataclass(slots=True)
class RouteOutcome:
    """Result of one orchestrator call, ready to show to the user.

    ``close_modal`` tells the selection UI whether it may close; aborts that
    leave nothing to fix in the selection (no location, data still loading)
    close it, while geocoding and optimizer failures keep it open.
    """

    success: bool
    close_modal: bool = True
    notifications: list[Notification] = field(default_factory=list)
    ordered_job_ids: list[str] = field(default_factory=list)
    totals: Optional[RouteTotals] = None

    @classmethod
    def failed(cls, error: RoutePlanningError, close_modal: bool = False) -> "RouteOutcome":
        return cls(
            success=False,
            close_modal=close_modal,
            notifications=[Notification("error", error.title, error.description)],
        )


def _stop_metrics(leg: LegMetrics) -> StopMetrics:
    return StopMetrics(
        travel_time=leg.duration,
        distance=leg.distance,
        travel_time_value=leg.duration_value,
        distance_value=leg.distance_value,
    )


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


class RouteOrchestrator:
    """Coordinates the job store, geocoder and routing gateway for one service.

    Every public method catches failures at its boundary and reports them as
    notifications on the returned :class:`RouteOutcome`. No destructive write
    happens until location, coordinates and the routing result are all in
    hand, and the final writes go through ``JobStore.commit_route``, so a
    failed run leaves the stored route exactly as it was and a repeated run
    converges on the same state.
    """

    def __init__(
        self,
        store: JobStore,
        gateway: Optional[RouteOptimizationGateway],
        geocoder: Optional[Geocoder] = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.geocoder = geocoder
        self._optimizing: Counter[str] = Counter()

    def _require_gateway(self) -> RouteOptimizationGateway:
        if self.gateway is None:
            raise GatewayError("Routing service is not configured.")
        return self.gateway

    def is_optimizing(self, user_id: str) -> bool:
        """Advisory flag; set while any run for ``user_id`` is in flight."""
        return self._optimizing[user_id] > 0

    def _begin(self, user_id: str) -> None:
        self._optimizing[user_id] += 1

    def _finish(self, user_id: str) -> None:
        self._optimizing[user_id] -= 1
        if self._optimizing[user_id] <= 0:
            del self._optimizing[user_id]

    async def _route_cleanup(
        self, user_id: str, keep: set[str]
    ) -> tuple[list[RouteSelection], list[StopMetricsUpdate]]:
        """Deselect every currently routed job outside ``keep``, whatever its status."""
        stale = [job for job in await self.store.list_selected_jobs(user_id) if job.job_id not in keep]
        return (
            [RouteSelection(job_id=job.job_id, selected=False) for job in stale],
            [StopMetricsUpdate(job_id=job.job_id, metrics=None) for job in stale],
        )

    # --- full optimization ------------------------------------------------

    async def optimize_and_save_route(
        self,
        user_id: str,
        selected_job_ids: Sequence[str],
        location: LocationProvider,
        pending_jobs: Optional[Sequence[Job]] = None,
    ) -> RouteOutcome:
        self._begin(user_id)
        try:
            return await self._optimize_and_save(user_id, list(dict.fromkeys(selected_job_ids)), location, pending_jobs)
        except RoutePlanningError as exc:
            logger.warning(f"Route optimization aborted for {user_id}: {exc.description}")
            close = not isinstance(exc, (GeocodingFailedError, OptimizationFailedError))
            return RouteOutcome.failed(exc, close_modal=close)
        except GatewayError as exc:
            logger.warning(f"Route optimization aborted for {user_id}: {exc}")
            return RouteOutcome.failed(RoutePlanningError(str(exc), title="Failed to optimize route"))
        except Exception as exc:
            logger.exception(f"Route optimization error for {user_id}: {exc}")
            return RouteOutcome.failed(RoutePlanningError(str(exc) or "Unknown error occurred", title="Failed to optimize route"))
        finally:
            self._finish(user_id)

    async def _optimize_and_save(
        self,
        user_id: str,
        selected_job_ids: list[str],
        location: LocationProvider,
        pending_jobs: Optional[Sequence[Job]],
    ) -> RouteOutcome:
        current_location = await get_current_location(location)

        if pending_jobs is None:
            pending = await self.store.list_pending_jobs(user_id)
        else:
            pending = list(pending_jobs)
            # An empty caller snapshot means its job list has not arrived yet.
            if not pending and selected_job_ids:
                raise JobsNotLoadedError()

        by_id = {job.job_id: job for job in pending}
        selected = [by_id[job_id] for job_id in selected_job_ids if job_id in by_id]
        if selected_job_ids and not selected:
            raise SelectionUnavailableError()

        overlay = await self._fill_coordinates(user_id, selected)
        with_coordinates = [job for job in selected if job.job_id in overlay or job.coordinates is not None]
        deselections, cleared = await self._route_cleanup(user_id, {job.job_id for job in selected})

        # A single stop has no meaningful round trip, so it is selected without routing.
        if len(with_coordinates) < 2:
            selections = [
                RouteSelection(job_id=job.job_id, selected=True, route_order=index)
                for index, job in enumerate(selected)
            ]
            stale = [StopMetricsUpdate(job_id=job.job_id, metrics=None) for job in selected]
            await self.store.commit_route(user_id, selections + deselections, stale + cleared, None)
            title = "Route cleared" if not selected else f"{_plural(len(selected), 'stop')} selected"
            logger.info(f"Route selection updated for {user_id} without routing ({len(selected)} stops)")
            return RouteOutcome(
                success=True,
                notifications=[Notification("success", title)],
                ordered_job_ids=[job.job_id for job in selected],
            )

        waypoints = [
            Waypoint(coordinates=overlay.get(job.job_id) or job.coordinates, address=job.address)
            for job in with_coordinates
        ]
        user = await self.store.get_user(user_id)
        destination = user.home_coordinates or current_location

        result = await self._require_gateway().optimize_route(current_location, destination, waypoints, optimize_order=True)
        if result is None:
            raise OptimizationFailedError()

        ordered_job_ids = [with_coordinates[index].job_id for index in result.waypoint_order]
        selections = [
            RouteSelection(job_id=job_id, selected=True, route_order=index)
            for index, job_id in enumerate(ordered_job_ids)
        ]
        metrics = [
            StopMetricsUpdate(job_id=job_id, metrics=_stop_metrics(result.metrics[index]), route_order=index)
            for index, job_id in enumerate(ordered_job_ids)
        ]
        totals = RouteTotals(
            total_distance=result.total_distance,
            total_duration=result.total_duration,
            total_distance_value=result.total_distance_value,
            total_duration_value=result.total_duration_value,
        )
        await self.store.commit_route(user_id, selections + deselections, metrics + cleared, totals)

        logger.info(
            f"Route optimized for {user_id}: {len(ordered_job_ids)} stops, "
            f"{totals.total_distance}, {totals.total_duration}"
        )
        return RouteOutcome(
            success=True,
            notifications=[
                Notification(
                    "success",
                    "Route optimized",
                    f"{len(ordered_job_ids)} stops, {totals.total_distance}, {totals.total_duration}",
                )
            ],
            ordered_job_ids=ordered_job_ids,
            totals=totals,
        )

    # --- manual reorder ---------------------------------------------------

    async def recalculate_route_metrics(
        self,
        user_id: str,
        ordered_job_ids: Sequence[str],
        location: LocationProvider,
        pending_jobs: Optional[Sequence[Job]] = None,
    ) -> RouteOutcome:
        """Recompute per-stop metrics for a caller-chosen order without re-sequencing."""
        ordered_job_ids = list(dict.fromkeys(ordered_job_ids))
        if len(ordered_job_ids) < 2:
            return RouteOutcome(success=True, ordered_job_ids=ordered_job_ids)

        self._begin(user_id)
        try:
            return await self._recalculate(user_id, ordered_job_ids, location, pending_jobs)
        except RoutePlanningError as exc:
            logger.warning(f"Route recalculation aborted for {user_id}: {exc.description}")
            return RouteOutcome.failed(exc)
        except GatewayError as exc:
            logger.warning(f"Route recalculation aborted for {user_id}: {exc}")
            return RouteOutcome.failed(RoutePlanningError(str(exc), title="Failed to recalculate route"))
        except Exception as exc:
            logger.exception(f"Route recalculation error for {user_id}: {exc}")
            return RouteOutcome.failed(RoutePlanningError(str(exc) or "Unknown error occurred", title="Failed to recalculate route"))
        finally:
            self._finish(user_id)

    async def _recalculate(
        self,
        user_id: str,
        ordered_job_ids: list[str],
        location: LocationProvider,
        pending_jobs: Optional[Sequence[Job]],
    ) -> RouteOutcome:
        current_location = await get_current_location(location)

        pending = list(pending_jobs) if pending_jobs is not None else await self.store.list_pending_jobs(user_id)
        by_id = {job.job_id: job for job in pending}
        ordered = [by_id[job_id] for job_id in ordered_job_ids if job_id in by_id]
        if len(ordered) < 2:
            return RouteOutcome(success=True, ordered_job_ids=[job.job_id for job in ordered])

        overlay = await self._fill_coordinates(user_id, ordered)
        with_coordinates = [job for job in ordered if job.job_id in overlay or job.coordinates is not None]
        if len(with_coordinates) < 2:
            return RouteOutcome(success=True, ordered_job_ids=[job.job_id for job in ordered])

        waypoints = [
            Waypoint(coordinates=overlay.get(job.job_id) or job.coordinates, address=job.address)
            for job in with_coordinates
        ]
        user = await self.store.get_user(user_id)

        result = await self._require_gateway().compute_fixed_order_metrics(
            current_location, waypoints, destination=user.home_coordinates
        )
        if result is None:
            raise OptimizationFailedError("Failed to calculate route metrics")

        job_ids = [job.job_id for job in with_coordinates]
        selections = [
            RouteSelection(job_id=job_id, selected=True, route_order=index) for index, job_id in enumerate(job_ids)
        ]
        metrics = [
            StopMetricsUpdate(job_id=job_id, metrics=_stop_metrics(result.metrics[index]), route_order=index)
            for index, job_id in enumerate(job_ids)
        ]
        totals = RouteTotals(
            total_distance=result.total_distance,
            total_duration=result.total_duration,
            total_distance_value=result.total_distance_value,
            total_duration_value=result.total_duration_value,
        )
        # Routed jobs left out of the new order would otherwise share its positions.
        deselections, cleared = await self._route_cleanup(user_id, set(job_ids))
        await self.store.commit_route(user_id, selections + deselections, metrics + cleared, totals)

        logger.info(f"Route metrics recalculated for {user_id}: {len(job_ids)} stops, {totals.total_distance}")
        return RouteOutcome(
            success=True,
            notifications=[Notification("success", "Route updated")],
            ordered_job_ids=job_ids,
            totals=totals,
        )

    # --- clearing ---------------------------------------------------------

    async def clear_route(self, user_id: str) -> RouteOutcome:
        try:
            await self.store.clear_route(user_id)
        except Exception as exc:
            logger.exception(f"Clear route error for {user_id}: {exc}")
            return RouteOutcome(success=False, notifications=[Notification("error", "Failed to clear route")])
        return RouteOutcome(success=True, notifications=[Notification("success", "Route cleared")])

    # --- coordinates ------------------------------------------------------

    async def _geocode(self, address: str) -> Coordinates | None:
        if self.geocoder is None:
            raise GatewayError("Geocoding service is not configured.")
        return await self.geocoder.geocode(address)

    async def _fill_coordinates(self, user_id: str, jobs: Sequence[Job]) -> dict[str, Coordinates]:
        """Geocode every job lacking coordinates, all or nothing.

        Returns an overlay of freshly found coordinates keyed by job id; the
        job objects themselves are left untouched. Raises
        :class:`GeocodingFailedError` naming every address that could not be
        located, in which case nothing is written.
        """
        missing = [job for job in jobs if job.coordinates is None]
        if not missing:
            return {}

        results = await asyncio.gather(
            *(self._geocode(job.address) for job in missing),
            return_exceptions=True,
        )

        overlay: dict[str, Coordinates] = {}
        failed: list[str] = []
        for job, result in zip(missing, results):
            if isinstance(result, Coordinates):
                overlay[job.job_id] = result
                continue
            if isinstance(result, BaseException):
                logger.warning(f"Geocoding failed for '{job.address}': {result}")
            failed.append(job.address)

        if failed:
            raise GeocodingFailedError(failed)

        for job_id, coordinates in overlay.items():
            await self.store.update_coordinates(user_id, job_id, coordinates)
        return overlay
