"""Route optimization gateway: backend-agnostic ordering and per-leg metrics."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ...config import settings
from ...models.domain import Coordinates
from .formatting import format_distance, format_duration
from .models import BackendRoute, FixedOrderMetrics, Leg, LegMetrics, OptimizedRoute, Waypoint

logger = logging.getLogger(__name__)


class RoutingBackend(Protocol):
    async def compute_route(
        self,
        origin: Coordinates,
        destination: Coordinates,
        intermediates: Sequence[Coordinates],
        optimize: bool,
    ) -> BackendRoute | None:
        ...


def build_routing_backend(provider: str | None = None) -> RoutingBackend:
    """Instantiate the configured routing backend."""

    resolved = (provider or settings.routing_provider).lower()
    if resolved == "osrm":
        from .osrm_client import OSRMClient

        return OSRMClient()
    if resolved == "google":
        from .google_routes import GoogleRoutesClient

        return GoogleRoutesClient()
    raise ValueError(f"Unsupported routing provider '{provider}'.")


def leg_metrics(leg: Leg) -> LegMetrics:
    return LegMetrics(
        distance=format_distance(leg.distance_meters),
        duration=format_duration(leg.duration_seconds),
        distance_value=leg.distance_meters,
        duration_value=leg.duration_seconds,
    )


def _totals(legs: Sequence[Leg]) -> tuple[float, int]:
    return sum(leg.distance_meters for leg in legs), sum(leg.duration_seconds for leg in legs)


def _is_permutation(order: Sequence[int], size: int) -> bool:
    return sorted(order) == list(range(size))


class RouteOptimizationGateway:
    """Wraps a multi-stop routing backend.

    ``optimize_route`` asks the backend to re-sequence the waypoints;
    ``compute_fixed_order_metrics`` never reorders. Both return None when the
    backend reports no usable route.
    """

    def __init__(self, backend: RoutingBackend | None = None) -> None:
        self.backend = backend or build_routing_backend()

    async def optimize_route(
        self,
        origin: Coordinates,
        destination: Coordinates,
        waypoints: Sequence[Waypoint],
        optimize_order: bool = True,
    ) -> OptimizedRoute | None:
        if not waypoints:
            raise ValueError("At least one waypoint is required to optimize a route.")

        result = await self.backend.compute_route(
            origin,
            destination,
            [waypoint.coordinates for waypoint in waypoints],
            optimize_order,
        )
        if result is None:
            return None

        order = result.waypoint_order if result.waypoint_order is not None else list(range(len(waypoints)))
        if not _is_permutation(order, len(waypoints)):
            logger.warning(f"Routing backend returned an invalid waypoint order {order} for {len(waypoints)} stops")
            return None
        # One leg per waypoint plus the final leg to the destination.
        if len(result.legs) != len(waypoints) + 1:
            logger.warning(f"Routing backend returned {len(result.legs)} legs for {len(waypoints)} stops")
            return None

        total_distance, total_duration = _totals(result.legs)
        return OptimizedRoute(
            ordered_waypoints=[waypoints[index] for index in order],
            waypoint_order=list(order),
            metrics=[leg_metrics(leg) for leg in result.legs],
            total_distance=format_distance(total_distance),
            total_duration=format_duration(total_duration),
            total_distance_value=total_distance,
            total_duration_value=total_duration,
            overview_polyline=result.polyline,
        )

    async def compute_fixed_order_metrics(
        self,
        origin: Coordinates,
        waypoints: Sequence[Waypoint],
        destination: Coordinates | None = None,
    ) -> FixedOrderMetrics | None:
        """Metrics for ``waypoints`` visited exactly in the given order.

        Without ``destination`` the last waypoint is the end of the route.
        The per-waypoint list holds the leg arriving at each waypoint; a
        trailing leg to a separate destination only counts toward the totals.
        """
        if not waypoints:
            raise ValueError("At least one waypoint is required to compute route metrics.")

        coordinates = [waypoint.coordinates for waypoint in waypoints]
        if destination is not None:
            intermediates, final = coordinates, destination
        else:
            intermediates, final = coordinates[:-1], coordinates[-1]

        result = await self.backend.compute_route(origin, final, intermediates, False)
        if result is None:
            return None

        expected_legs = len(intermediates) + 1
        if len(result.legs) != expected_legs:
            logger.warning(f"Routing backend returned {len(result.legs)} legs, expected {expected_legs}")
            return None

        total_distance, total_duration = _totals(result.legs)
        return FixedOrderMetrics(
            metrics=[leg_metrics(leg) for leg in result.legs[: len(waypoints)]],
            total_distance=format_distance(total_distance),
            total_duration=format_duration(total_duration),
            total_distance_value=total_distance,
            total_duration_value=total_duration,
        )
