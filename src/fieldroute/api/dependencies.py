"""Shared FastAPI dependencies."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Header

from ..config import settings
from ..persistence import get_job_store
from ..persistence.store import JobStore
from ..services.extraction import ExtractionQueue, UnconfiguredExtractor
from ..services.geocoding import GeocodingClient, PlacesClient
from ..services.planner.orchestrator import RouteOrchestrator
from ..services.routing.gateway import RouteOptimizationGateway
from ..services.weather import WeatherClient

logger = logging.getLogger(__name__)


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity; authentication happens upstream of this service."""
    return (x_user_id or "").strip() or settings.default_user_id


def get_store() -> JobStore:
    return get_job_store()


@lru_cache()
def get_geocoder() -> Optional[GeocodingClient]:
    try:
        return GeocodingClient()
    except ValueError as exc:
        logger.warning(f"Geocoding disabled: {exc}")
        return None


@lru_cache()
def get_orchestrator() -> RouteOrchestrator:
    try:
        gateway: Optional[RouteOptimizationGateway] = RouteOptimizationGateway()
    except ValueError as exc:
        logger.warning(f"Route optimization disabled: {exc}")
        gateway = None
    return RouteOrchestrator(get_job_store(), gateway, get_geocoder())


@lru_cache()
def get_extraction_queue() -> ExtractionQueue:
    return ExtractionQueue(get_job_store(), UnconfiguredExtractor(), get_geocoder())


@lru_cache()
def get_places_client() -> Optional[PlacesClient]:
    try:
        return PlacesClient()
    except ValueError as exc:
        logger.warning(f"Address suggestions disabled: {exc}")
        return None


@lru_cache()
def get_weather_client() -> WeatherClient:
    return WeatherClient()
