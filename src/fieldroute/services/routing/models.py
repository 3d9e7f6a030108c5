"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ...models.domain import Coordinates


@dataclass(slots=True, frozen=True)
class Waypoint:
    """One stop, built from a job for the duration of a single routing call."""

    coordinates: Coordinates
    address: str


@dataclass(slots=True, frozen=True)
class Leg:
    """Raw travel segment as reported by a routing backend."""

    distance_meters: float
    duration_seconds: int


@dataclass(slots=True)
class BackendRoute:
    """Normalized backend answer: legs in travel order plus the visiting permutation."""

    legs: List[Leg]
    waypoint_order: Optional[List[int]] = None
    polyline: str = ""


@dataclass(slots=True, frozen=True)
class LegMetrics:
    distance: str
    duration: str
    distance_value: float
    duration_value: int


@dataclass(slots=True)
class OptimizedRoute:
    ordered_waypoints: List[Waypoint]
    waypoint_order: List[int]
    metrics: List[LegMetrics]
    total_distance: str
    total_duration: str
    total_distance_value: float
    total_duration_value: int
    overview_polyline: str = ""


@dataclass(slots=True)
class FixedOrderMetrics:
    """Per-waypoint arrival legs plus totals over every leg actually traversed."""

    metrics: List[LegMetrics]
    total_distance: str
    total_duration: str
    total_distance_value: float
    total_duration_value: int
