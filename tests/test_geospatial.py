from urllib.parse import parse_qs, urlparse

import pytest

from src.fieldroute.models.domain import Coordinates
from src.fieldroute.services.geospatial import build_navigation_url, haversine_km, is_location_nearby
from src.fieldroute.services.routing.formatting import format_distance, format_duration, parse_duration


@pytest.mark.parametrize(
    "meters, expected",
    [(1500, "0.9 mi"), (0, "0 mi"), (1609.34, "1 mi"), (3218.68, "2 mi"), (16093.4, "10 mi"), (17702.74, "11 mi"), (17863.67, "11.1 mi")],
)
def test_format_distance(meters, expected):
    assert format_distance(meters) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [(45, "45 sec"), (0, "0 sec"), (59, "59 sec"), (125, "2 min"), (150, "3 min"), (5400, "1h 30min"), (3600, "1h 0min")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize("raw, expected", [("123s", 123), ("12.5s", 12), ("59.9s", 59), (12.5, 13), (None, 0), (42, 42), ("0s", 0)])
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


def test_haversine_matches_known_distance():
    # Riyadh to Jeddah is roughly 845 km as the crow flies.
    distance = haversine_km(24.7136, 46.6753, 21.4858, 39.1925)
    assert 800 < distance < 900


def test_is_location_nearby_uses_threshold():
    job = Coordinates(lat=40.0, lng=-74.0)
    assert is_location_nearby(Coordinates(lat=40.001, lng=-74.0), job, threshold_km=0.2)
    assert not is_location_nearby(Coordinates(lat=40.01, lng=-74.0), job, threshold_km=0.2)


def _query(url: str) -> dict:
    parsed = urlparse(url)
    assert parsed.netloc == "www.google.com"
    assert parsed.path == "/maps/dir/"
    return {key: values[0] for key, values in parse_qs(parsed.query).items()}


def test_navigation_url_from_current_location_keeps_every_stop():
    stops = [Coordinates(40.0, -74.0), Coordinates(40.1, -74.1), Coordinates(40.2, -74.2)]

    query = _query(build_navigation_url(stops, use_current_location=True))

    assert "origin" not in query
    assert query["destination"] == "40.2,-74.2"
    assert query["waypoints"] == "40.0,-74.0|40.1,-74.1"
    assert query["travelmode"] == "driving"
    assert query["api"] == "1"


def test_navigation_url_with_first_stop_as_origin():
    stops = [Coordinates(40.0, -74.0), None, Coordinates(40.2, -74.2)]

    query = _query(build_navigation_url(stops, use_current_location=False))

    assert query["origin"] == "40.0,-74.0"
    assert query["destination"] == "40.2,-74.2"
    assert "waypoints" not in query


def test_navigation_url_requires_two_stops():
    assert build_navigation_url([Coordinates(40.0, -74.0), None]) is None
    assert build_navigation_url([]) is None
