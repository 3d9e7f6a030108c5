"""Route planning endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...errors import JobNotFoundError
from ...persistence.store import JobStore
from ...schemas.routing import (
    DeviceLocation,
    NavigationUrlResponse,
    NearbyRequest,
    NearbyResponse,
    OptimizeRouteRequest,
    RecalculateRouteRequest,
    RouteOutcomeModel,
    RouteStatusResponse,
    RouteTotalsModel,
)
from ...services.geospatial import build_navigation_url, haversine_km
from ...services.location import ReportedLocation
from ...services.planner.orchestrator import RouteOrchestrator
from ..dependencies import get_orchestrator, get_store, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])


def _reported_location(payload: DeviceLocation) -> ReportedLocation:
    return ReportedLocation(
        coordinates=payload.location.to_domain() if payload.location else None,
        error=payload.location_error,
    )


@router.post("/optimize", response_model=RouteOutcomeModel, status_code=status.HTTP_200_OK)
async def optimize(
    payload: OptimizeRouteRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: RouteOrchestrator = Depends(get_orchestrator),
) -> RouteOutcomeModel:
    if orchestrator.is_optimizing(user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A route optimization is already running.")
    outcome = await orchestrator.optimize_and_save_route(user_id, payload.job_ids, _reported_location(payload))
    return RouteOutcomeModel.from_domain(outcome)


@router.post("/recalculate", response_model=RouteOutcomeModel, status_code=status.HTTP_200_OK)
async def recalculate(
    payload: RecalculateRouteRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: RouteOrchestrator = Depends(get_orchestrator),
) -> RouteOutcomeModel:
    outcome = await orchestrator.recalculate_route_metrics(user_id, payload.job_ids, _reported_location(payload))
    return RouteOutcomeModel.from_domain(outcome)


@router.post("/clear", response_model=RouteOutcomeModel, status_code=status.HTTP_200_OK)
async def clear(
    user_id: str = Depends(get_user_id),
    orchestrator: RouteOrchestrator = Depends(get_orchestrator),
) -> RouteOutcomeModel:
    return RouteOutcomeModel.from_domain(await orchestrator.clear_route(user_id))


@router.get("/totals", response_model=Optional[RouteTotalsModel])
async def totals(
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> Optional[RouteTotalsModel]:
    return RouteTotalsModel.from_domain(await store.get_route_totals(user_id))


@router.get("/status", response_model=RouteStatusResponse)
async def route_status(
    user_id: str = Depends(get_user_id),
    orchestrator: RouteOrchestrator = Depends(get_orchestrator),
) -> RouteStatusResponse:
    return RouteStatusResponse(is_optimizing=orchestrator.is_optimizing(user_id))


@router.get("/navigation-url", response_model=NavigationUrlResponse)
async def navigation_url(
    use_current_location: bool = Query(default=True),
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> NavigationUrlResponse:
    jobs = await store.list_selected_jobs(user_id)
    stops = [job.coordinates for job in jobs]
    url = build_navigation_url(stops, use_current_location=use_current_location)
    return NavigationUrlResponse(url=url, stops=sum(1 for stop in stops if stop is not None))


@router.post("/nearby", response_model=NearbyResponse)
async def nearby(
    payload: NearbyRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> NearbyResponse:
    try:
        job = await store.get_job(user_id, payload.job_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if job.coordinates is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job has no coordinates yet.")

    threshold = payload.threshold_km if payload.threshold_km is not None else settings.nearby_threshold_km
    distance = haversine_km(payload.location.lat, payload.location.lng, job.coordinates.lat, job.coordinates.lng)
    return NearbyResponse(job_id=job.job_id, nearby=distance <= threshold, distance_km=round(distance, 3))
