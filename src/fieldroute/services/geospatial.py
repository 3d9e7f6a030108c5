"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Optional, Sequence
from urllib.parse import urlencode

from ..models.domain import Coordinates

EARTH_RADIUS_KM = 6371.0
GOOGLE_MAPS_DIRECTIONS_URL = "https://www.google.com/maps/dir/"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_location_nearby(current: Coordinates, target: Coordinates, threshold_km: float = 0.2) -> bool:
    """Return True if ``current`` lies within ``threshold_km`` of ``target``."""

    return haversine_km(current.lat, current.lng, target.lat, target.lng) <= threshold_km


def _format_point(point: Coordinates) -> str:
    return f"{point.lat},{point.lng}"


def build_navigation_url(
    stops: Sequence[Optional[Coordinates]],
    use_current_location: bool = True,
) -> str | None:
    """Build a Google Maps driving-directions URL visiting ``stops`` in order.

    Stops without coordinates are skipped. Returns None when fewer than two
    usable stops remain. With ``use_current_location`` the origin is left out
    so the maps app starts from the device position and every stop but the
    last becomes a waypoint; otherwise the first stop is the origin. The last
    stop is always the destination.
    """
    points = [stop for stop in stops if stop is not None]
    if len(points) < 2:
        return None

    params = {"api": "1", "destination": _format_point(points[-1]), "travelmode": "driving"}
    if use_current_location:
        intermediates = points[:-1]
    else:
        params["origin"] = _format_point(points[0])
        intermediates = points[1:-1]
    if intermediates:
        params["waypoints"] = "|".join(_format_point(point) for point in intermediates)

    return f"{GOOGLE_MAPS_DIRECTIONS_URL}?{urlencode(params, safe=',|')}"
