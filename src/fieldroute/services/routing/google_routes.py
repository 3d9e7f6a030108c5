"""HTTP client for the Google Routes API (computeRoutes)."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...errors import GatewayError
from ...models.domain import Coordinates
from .formatting import parse_duration
from .models import BackendRoute, Leg

logger = logging.getLogger(__name__)

FIELD_MASK = (
    "routes.duration,routes.distanceMeters,routes.polyline,routes.legs,"
    "routes.optimizedIntermediateWaypointIndex"
)


def _location(point: Coordinates) -> dict:
    return {"location": {"latLng": {"latitude": point.lat, "longitude": point.lng}}}


class GoogleRoutesClient:
    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        travel_mode: str | None = None,
        routing_preference: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Routes API key is not configured.")
        self.url = url or settings.routes_url
        self.travel_mode = travel_mode or settings.travel_mode
        self.routing_preference = routing_preference or settings.routing_preference
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))

    def build_request(
        self,
        origin: Coordinates,
        destination: Coordinates,
        intermediates: Sequence[Coordinates],
        optimize: bool,
    ) -> dict:
        return {
            "origin": _location(origin),
            "destination": _location(destination),
            "intermediates": [_location(point) for point in intermediates],
            "travelMode": self.travel_mode,
            "routingPreference": self.routing_preference,
            "optimizeWaypointOrder": bool(optimize and intermediates),
            "computeAlternativeRoutes": False,
        }

    async def compute_route(
        self,
        origin: Coordinates,
        destination: Coordinates,
        intermediates: Sequence[Coordinates],
        optimize: bool,
    ) -> BackendRoute | None:
        body = self.build_request(origin, destination, intermediates, optimize)
        headers = {"X-Goog-Api-Key": self.api_key, "X-Goog-FieldMask": FIELD_MASK}

        client = self._get_client()
        try:
            response = await client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning(f"Routes API request failed: {exc}")
            raise GatewayError(f"Routes API is not reachable: {exc}") from exc
        finally:
            if client is not self._client:
                await client.aclose()

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Routes API returned a non-JSON body (HTTP {response.status_code})")
            return None
        if response.is_error:
            message = (data.get("error") or {}).get("message") if isinstance(data, dict) else None
            logger.warning(f"Routes API returned HTTP {response.status_code}: {message}")
            return None

        routes = data.get("routes") or []
        if not routes:
            return None
        route = routes[0]

        # Zero-valued fields are omitted from the JSON encoding, hence the defaults.
        legs = [
            Leg(
                distance_meters=float(leg.get("distanceMeters", 0)),
                duration_seconds=parse_duration(leg.get("duration", "0s")),
            )
            for leg in route.get("legs", [])
        ]
        waypoint_order = route.get("optimizedIntermediateWaypointIndex") or list(range(len(intermediates)))
        return BackendRoute(
            legs=legs,
            waypoint_order=[int(index) for index in waypoint_order],
            polyline=(route.get("polyline") or {}).get("encodedPolyline", ""),
        )
