"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...errors import GatewayError
from ...models.domain import Coordinates
from .models import BackendRoute, Leg

logger = logging.getLogger(__name__)


class OSRMClient:
    """Routing backend built on the OSRM ``trip`` and ``route`` services.

    ``trip`` solves the visiting order with the first coordinate fixed as the
    source and the last as the destination; ``route`` keeps the given order.
    """

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))

    async def _request(self, service: str, coordinates: Sequence[Coordinates], params: dict) -> dict | None:
        # OSRM expects "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{point.lng},{point.lat}" for point in coordinates)
        url = f"{self.base_url}/{service}/v1/{self.profile}/{coordinate_str}"

        client = self._get_client()
        try:
            response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.warning(f"OSRM {service} request failed: {exc}")
            raise GatewayError(f"Failed to connect to OSRM service at {self.base_url}: {exc}") from exc
        finally:
            if client is not self._client:
                await client.aclose()

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"OSRM {service} returned a non-JSON body (HTTP {response.status_code})")
            return None
        if data.get("code") != "Ok":
            logger.warning(f"OSRM {service} request failed: {data.get('message', data.get('code'))}")
            return None
        return data

    async def compute_route(
        self,
        origin: Coordinates,
        destination: Coordinates,
        intermediates: Sequence[Coordinates],
        optimize: bool,
    ) -> BackendRoute | None:
        coordinates = [origin, *intermediates, destination]
        common = {"overview": "simplified", "geometries": "polyline", "steps": "false"}

        if optimize and intermediates:
            data = await self._request(
                "trip",
                coordinates,
                {**common, "source": "first", "destination": "last", "roundtrip": "false"},
            )
            if not data or not data.get("trips"):
                return None
            route = data["trips"][0]
            # waypoints[i].waypoint_index is the trip position of input coordinate i
            positions = [wp["waypoint_index"] for wp in data.get("waypoints", [])[1:-1]]
            if len(positions) != len(intermediates):
                logger.warning("OSRM trip response is missing waypoint positions")
                return None
            waypoint_order = sorted(range(len(intermediates)), key=lambda index: positions[index])
        else:
            data = await self._request("route", coordinates, common)
            if not data or not data.get("routes"):
                return None
            route = data["routes"][0]
            waypoint_order = list(range(len(intermediates)))

        legs = [
            Leg(distance_meters=float(leg.get("distance", 0.0)), duration_seconds=round(leg.get("duration", 0.0)))
            for leg in route.get("legs", [])
        ]
        return BackendRoute(legs=legs, waypoint_order=waypoint_order, polyline=route.get("geometry") or "")


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by making a simple route request.

    Public OSRM endpoints may not have a /health endpoint, so we test
    connectivity by routing between two fixed coordinates.
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
