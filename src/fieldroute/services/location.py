"""Device location providers."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from ..config import settings
from ..errors import LocationUnavailableError
from ..models.domain import Coordinates

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    async def get_current_position(self) -> Coordinates:
        """Return the device position or raise :class:`LocationUnavailableError`."""
        ...


class ReportedLocation:
    """Location captured by the browser and sent along with the request.

    The client reports either a position or one of the geolocation failure
    reasons (``permission_denied``, ``position_unavailable``, ``timeout``,
    ``unsupported``).
    """

    def __init__(self, coordinates: Optional[Coordinates] = None, error: Optional[str] = None) -> None:
        self.coordinates = coordinates
        self.error = error

    async def get_current_position(self) -> Coordinates:
        if self.coordinates is not None:
            return self.coordinates
        raise LocationUnavailableError(self.error or "position_unavailable")


async def get_current_location(provider: LocationProvider, timeout: float | None = None) -> Coordinates:
    """Ask ``provider`` for a position, giving up after ``timeout`` seconds."""

    wait = timeout if timeout is not None else settings.location_timeout_seconds
    try:
        return await asyncio.wait_for(provider.get_current_position(), timeout=wait)
    except asyncio.TimeoutError as exc:
        logger.warning(f"Location request timed out after {wait}s")
        raise LocationUnavailableError("timeout") from exc
