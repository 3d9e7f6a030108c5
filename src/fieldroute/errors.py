"""Exception taxonomy for route planning and the job store."""

from __future__ import annotations

from typing import Sequence

LOCATION_MESSAGES = {
    "permission_denied": "Location access denied. Please enable location permissions.",
    "position_unavailable": "Location information is unavailable.",
    "timeout": "Location request timed out.",
    "unsupported": "Geolocation is not supported by your browser",
}


class RoutePlanningError(Exception):
    """A recoverable failure that is reported to the user and aborts the run."""

    title = "Route planning failed"

    def __init__(self, description: str, *, title: str | None = None) -> None:
        super().__init__(description)
        self.description = description
        if title is not None:
            self.title = title


class LocationUnavailableError(RoutePlanningError):
    title = "Location Required"

    def __init__(self, reason: str) -> None:
        self.reason = reason if reason in LOCATION_MESSAGES else "position_unavailable"
        super().__init__(LOCATION_MESSAGES.get(reason, "Unable to get your location"))


class JobsNotLoadedError(RoutePlanningError):
    title = "Unable to optimize route"

    def __init__(self) -> None:
        super().__init__("Job data is still loading. Please try again.")


class SelectionUnavailableError(RoutePlanningError):
    title = "Unable to optimize route"

    def __init__(self) -> None:
        super().__init__("The selected jobs are no longer pending. Please refresh and try again.")


class GeocodingFailedError(RoutePlanningError):
    title = "Failed to find coordinates"

    def __init__(self, addresses: Sequence[str]) -> None:
        self.addresses = list(addresses)
        plural = len(self.addresses) > 1
        super().__init__(
            f"Could not geocode the following address{'es' if plural else ''}: "
            f"{', '.join(self.addresses)}. Please edit the job site address for "
            f"{'these jobs' if plural else 'this job'}."
        )


class OptimizationFailedError(RoutePlanningError):
    title = "Route optimization failed"

    def __init__(self, description: str = "Unable to calculate optimal route. Please try again.") -> None:
        super().__init__(description)


class GatewayError(Exception):
    """A third-party backend was unreachable or returned an unusable payload."""


class JobNotFoundError(LookupError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id} not found or unauthorized")
        self.job_id = job_id


class RecordNotFoundError(LookupError):
    """A payment or receipt that does not exist or belongs to another user."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind.capitalize()} {record_id} not found or unauthorized")
        self.kind = kind
        self.record_id = record_id


class QueueItemNotFoundError(LookupError):
    def __init__(self, queue_id: str) -> None:
        super().__init__(f"Item {queue_id} not found or unauthorized")
        self.queue_id = queue_id
