"""Route planning request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import RouteTotals
from ..services.planner.orchestrator import RouteOutcome
from .jobs import CoordinatesModel

LocationError = Literal["permission_denied", "position_unavailable", "timeout", "unsupported"]


class DeviceLocation(BaseModel):
    """Position reported by the browser, or the reason it could not be read."""

    location: Optional[CoordinatesModel] = None
    location_error: Optional[LocationError] = None


class OptimizeRouteRequest(DeviceLocation):
    job_ids: List[str] = Field(default_factory=list, description="Selected job ids; an empty list clears the route.")


class RecalculateRouteRequest(DeviceLocation):
    job_ids: List[str] = Field(..., description="Job ids in the exact order to visit them.")


class NearbyRequest(BaseModel):
    job_id: str
    location: CoordinatesModel
    threshold_km: Optional[float] = Field(default=None, ge=0)


class NearbyResponse(BaseModel):
    job_id: str
    nearby: bool
    distance_km: float


class RouteTotalsModel(BaseModel):
    total_distance: str
    total_duration: str
    total_distance_value: float
    total_duration_value: int

    @classmethod
    def from_domain(cls, totals: Optional[RouteTotals]) -> Optional["RouteTotalsModel"]:
        if totals is None:
            return None
        return cls(
            total_distance=totals.total_distance,
            total_duration=totals.total_duration,
            total_distance_value=totals.total_distance_value,
            total_duration_value=totals.total_duration_value,
        )


class NotificationModel(BaseModel):
    level: Literal["success", "error", "info"]
    title: str
    description: Optional[str] = None


class RouteOutcomeModel(BaseModel):
    success: bool
    close_modal: bool
    notifications: List[NotificationModel] = Field(default_factory=list)
    ordered_job_ids: List[str] = Field(default_factory=list)
    totals: Optional[RouteTotalsModel] = None

    @classmethod
    def from_domain(cls, outcome: RouteOutcome) -> "RouteOutcomeModel":
        return cls(
            success=outcome.success,
            close_modal=outcome.close_modal,
            notifications=[
                NotificationModel(level=note.level, title=note.title, description=note.description)
                for note in outcome.notifications
            ],
            ordered_job_ids=list(outcome.ordered_job_ids),
            totals=RouteTotalsModel.from_domain(outcome.totals),
        )


class RouteStatusResponse(BaseModel):
    is_optimizing: bool


class NavigationUrlResponse(BaseModel):
    url: Optional[str] = None
    stops: int
