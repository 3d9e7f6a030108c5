"""Domain models for jobs, users and route aggregates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

JobStatus = Literal["pending", "completed", "paid"]
JOB_STATUSES: tuple[str, ...] = ("pending", "completed", "paid")
Theme = Literal["light", "dark", "system"]


@dataclass(slots=True, frozen=True)
class Coordinates:
    lat: float
    lng: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


@dataclass(slots=True)
class Task:
    """One line item extracted from a scope-of-work document."""

    id: str
    task_name: str
    category: str = "General"
    specific_instructions: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    materials: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    requires_online_order: bool = False
    completed: bool = False


@dataclass(slots=True, frozen=True)
class StopMetrics:
    """Travel time and distance to reach a stop from the previous one in sequence."""

    travel_time: str
    distance: str
    travel_time_value: int
    distance_value: float


@dataclass(slots=True, frozen=True)
class Weather:
    """Daily forecast at a job site, temperatures in Fahrenheit."""

    temp_max: int
    precip_prob: Optional[float]
    condition: str
    code: int


@dataclass(slots=True)
class Job:
    """A unit of work at a physical address."""

    job_id: str
    user_id: str
    address: str
    coordinates: Optional[Coordinates] = None
    selected_for_route: bool = False
    route_order: Optional[int] = None
    metrics: Optional[StopMetrics] = None
    status: str = "pending"
    summary: Optional[str] = None
    tasks: list[Task] = field(default_factory=list)
    access_codes: list[str] = field(default_factory=list)
    due_date: Optional[str] = None
    notes: Optional[str] = None
    source_file_ids: list[str] = field(default_factory=list)
    completed_on: Optional[str] = None
    paid_on: Optional[str] = None
    weather: Optional[Weather] = None
    created_at: float = 0.0


@dataclass(slots=True)
class Payment:
    """A check or cash payment recorded against one job."""

    payment_id: str
    user_id: str
    job_id: str
    image_id: str
    amount: float
    date: str
    payer_name: Optional[str] = None
    detected_address: Optional[str] = None
    created_at: float = 0.0


@dataclass(slots=True)
class Receipt:
    """A material purchase charged to one job."""

    receipt_id: str
    user_id: str
    job_id: str
    image_id: str
    store_name: str
    total: float
    date: str
    store_location: Optional[str] = None
    summary: Optional[str] = None
    created_at: float = 0.0


@dataclass(slots=True, frozen=True)
class RouteTotals:
    """Aggregate distance and duration across every leg of the last computed route."""

    total_distance: str
    total_duration: str
    total_distance_value: float
    total_duration_value: int


@dataclass(slots=True)
class User:
    user_id: str
    email: str = ""
    name: Optional[str] = None
    home_address: Optional[str] = None
    home_coordinates: Optional[Coordinates] = None
    theme: Optional[str] = None


@dataclass(slots=True, frozen=True)
class RouteSelection:
    """Selection write for one job: selected jobs carry a position, deselected ones do not."""

    job_id: str
    selected: bool
    route_order: Optional[int] = None


@dataclass(slots=True, frozen=True)
class StopMetricsUpdate:
    """Per-stop metrics write; a None ``route_order`` leaves the position untouched."""

    job_id: str
    metrics: Optional[StopMetrics]
    route_order: Optional[int] = None
