"""Job request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import Coordinates, Job, Task, Weather


class CoordinatesModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)

    @classmethod
    def from_domain(cls, coordinates: Optional[Coordinates]) -> Optional["CoordinatesModel"]:
        if coordinates is None:
            return None
        return cls(lat=coordinates.lat, lng=coordinates.lng)


class TaskModel(BaseModel):
    id: str
    task_name: str
    category: str = "General"
    specific_instructions: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    materials: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    requires_online_order: bool = False
    completed: bool = False

    def to_domain(self) -> Task:
        return Task(**self.model_dump())

    @classmethod
    def from_domain(cls, task: Task) -> "TaskModel":
        return cls(
            id=task.id,
            task_name=task.task_name,
            category=task.category,
            specific_instructions=task.specific_instructions,
            quantity=task.quantity,
            unit=task.unit,
            materials=list(task.materials),
            tools=list(task.tools),
            requires_online_order=task.requires_online_order,
            completed=task.completed,
        )


class StopMetricsModel(BaseModel):
    travel_time: str
    distance: str
    travel_time_value: int
    distance_value: float


class WeatherModel(BaseModel):
    temp_max: int
    precip_prob: Optional[float] = None
    condition: str
    code: int

    @classmethod
    def from_domain(cls, weather: Optional[Weather]) -> Optional["WeatherModel"]:
        if weather is None:
            return None
        return cls(
            temp_max=weather.temp_max,
            precip_prob=weather.precip_prob,
            condition=weather.condition,
            code=weather.code,
        )


class JobModel(BaseModel):
    job_id: str
    address: str
    coordinates: Optional[CoordinatesModel] = None
    selected_for_route: bool = False
    route_order: Optional[int] = None
    metrics: Optional[StopMetricsModel] = None
    status: str
    summary: Optional[str] = None
    tasks: List[TaskModel] = Field(default_factory=list)
    access_codes: List[str] = Field(default_factory=list)
    due_date: Optional[str] = None
    notes: Optional[str] = None
    source_file_ids: List[str] = Field(default_factory=list)
    completed_on: Optional[str] = None
    paid_on: Optional[str] = None
    weather: Optional[WeatherModel] = None
    created_at: float = 0.0

    @classmethod
    def from_domain(cls, job: Job) -> "JobModel":
        metrics = None
        if job.metrics is not None:
            metrics = StopMetricsModel(
                travel_time=job.metrics.travel_time,
                distance=job.metrics.distance,
                travel_time_value=job.metrics.travel_time_value,
                distance_value=job.metrics.distance_value,
            )
        return cls(
            job_id=job.job_id,
            address=job.address,
            coordinates=CoordinatesModel.from_domain(job.coordinates),
            selected_for_route=job.selected_for_route,
            route_order=job.route_order,
            metrics=metrics,
            status=job.status,
            summary=job.summary,
            tasks=[TaskModel.from_domain(task) for task in job.tasks],
            access_codes=list(job.access_codes),
            due_date=job.due_date,
            notes=job.notes,
            source_file_ids=list(job.source_file_ids),
            completed_on=job.completed_on,
            paid_on=job.paid_on,
            weather=WeatherModel.from_domain(job.weather),
            created_at=job.created_at,
        )


class JobCreateRequest(BaseModel):
    address: str = Field(..., min_length=1)
    summary: Optional[str] = None
    tasks: List[TaskModel] = Field(default_factory=list)
    access_codes: List[str] = Field(default_factory=list)
    due_date: Optional[str] = None
    notes: Optional[str] = None
    coordinates: Optional[CoordinatesModel] = None
    source_file_ids: List[str] = Field(default_factory=list)


class JobUpdateRequest(BaseModel):
    address: Optional[str] = Field(default=None, min_length=1)
    summary: Optional[str] = None
    tasks: Optional[List[TaskModel]] = None
    access_codes: Optional[List[str]] = None
    due_date: Optional[str] = None
    notes: Optional[str] = None
    coordinates: Optional[CoordinatesModel] = None


class JobStatusRequest(BaseModel):
    status: Literal["pending", "completed", "paid"]


class TaskUpdateRequest(BaseModel):
    completed: bool


class TaskReorderRequest(BaseModel):
    task_ids: List[str]


class JobStatsResponse(BaseModel):
    pending: int
    completed: int
    paid: int

    @classmethod
    def from_counts(cls, counts: Dict[str, int]) -> "JobStatsResponse":
        return cls(**counts)
