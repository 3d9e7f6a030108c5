"""Job endpoints."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...errors import GatewayError, JobNotFoundError
from ...persistence.store import JobStore
from ...schemas.jobs import (
    JobCreateRequest,
    JobModel,
    JobStatsResponse,
    JobStatusRequest,
    JobUpdateRequest,
    TaskReorderRequest,
    TaskUpdateRequest,
)
from ...services import jobs as job_service
from ...services.weather import WeatherClient, refresh_job_weather
from ..dependencies import get_geocoder, get_store, get_user_id, get_weather_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _not_found(exc: JobNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=List[JobModel])
async def list_jobs(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> List[JobModel]:
    jobs = await store.list_jobs(user_id, status=status_filter)
    return [JobModel.from_domain(job) for job in jobs]


@router.get("/selected", response_model=List[JobModel])
async def selected_jobs(
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> List[JobModel]:
    return [JobModel.from_domain(job) for job in await store.list_selected_jobs(user_id)]


@router.get("/stats", response_model=JobStatsResponse)
async def job_stats(
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> JobStatsResponse:
    return JobStatsResponse.from_counts(await job_service.job_stats(store, user_id))


@router.post("", response_model=JobModel, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreateRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
    geocoder=Depends(get_geocoder),
) -> JobModel:
    job = await job_service.create_job(
        store,
        user_id,
        payload.address,
        geocoder=geocoder,
        coordinates=payload.coordinates.to_domain() if payload.coordinates else None,
        summary=payload.summary,
        tasks=[task.to_domain() for task in payload.tasks],
        access_codes=payload.access_codes,
        due_date=payload.due_date,
        notes=payload.notes,
        source_file_ids=payload.source_file_ids,
    )
    return JobModel.from_domain(job)


@router.get("/{job_id}", response_model=JobModel)
async def get_job(
    job_id: str,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> JobModel:
    try:
        return JobModel.from_domain(await store.get_job(user_id, job_id))
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc


@router.patch("/{job_id}", response_model=JobModel)
async def update_job(
    job_id: str,
    payload: JobUpdateRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> JobModel:
    fields = payload.model_dump(exclude_unset=True)
    if "coordinates" in fields:
        fields["coordinates"] = payload.coordinates.to_domain() if payload.coordinates else None
    if "tasks" in fields:
        fields["tasks"] = [task.to_domain() for task in payload.tasks or []]
    try:
        job = await job_service.update_job(store, user_id, job_id, **fields)
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return JobModel.from_domain(job)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: str,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> Response:
    try:
        await store.delete_job(user_id, job_id)
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{job_id}/status", response_model=JobModel)
async def update_status(
    job_id: str,
    payload: JobStatusRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> JobModel:
    try:
        return JobModel.from_domain(await job_service.update_status(store, user_id, job_id, payload.status))
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/{job_id}/tasks/reorder", response_model=JobModel)
async def reorder_tasks(
    job_id: str,
    payload: TaskReorderRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> JobModel:
    try:
        return JobModel.from_domain(await job_service.reorder_tasks(store, user_id, job_id, payload.task_ids))
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/{job_id}/tasks/{task_id}", response_model=JobModel)
async def update_task(
    job_id: str,
    task_id: str,
    payload: TaskUpdateRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> JobModel:
    try:
        job = await job_service.update_task(store, user_id, job_id, task_id, payload.completed)
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc
    return JobModel.from_domain(job)


@router.post("/{job_id}/weather", response_model=JobModel)
async def refresh_weather(
    job_id: str,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
    weather: WeatherClient = Depends(get_weather_client),
) -> JobModel:
    """Store today's forecast for the job site."""
    try:
        job = await refresh_job_weather(store, weather, user_id, job_id)
    except JobNotFoundError as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except GatewayError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return JobModel.from_domain(job)
