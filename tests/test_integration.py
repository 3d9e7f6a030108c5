import time

import pytest
from fastapi.testclient import TestClient

from src.fieldroute.api.dependencies import (
    get_extraction_queue,
    get_geocoder,
    get_orchestrator,
    get_places_client,
    get_store,
    get_weather_client,
)
from src.fieldroute.main import create_app
from src.fieldroute.models.domain import Coordinates, Weather
from src.fieldroute.persistence.memory import InMemoryJobStore
from src.fieldroute.services.extraction import ExtractedJob, ExtractionQueue
from src.fieldroute.services.geocoding import PlaceSuggestion
from src.fieldroute.services.planner.orchestrator import RouteOrchestrator
from src.fieldroute.services.routing.gateway import RouteOptimizationGateway
from src.fieldroute.services.routing.models import BackendRoute, Leg

HEADERS = {"X-User-Id": "tech-1"}
HERE = {"lat": 40.0, "lng": -74.0}

KNOWN_ADDRESSES = {
    "1 Main St": Coordinates(40.01, -74.01),
    "2 Main St": Coordinates(40.02, -74.02),
    "3 Main St": Coordinates(40.03, -74.03),
    "9 Home Rd": Coordinates(40.5, -74.5),
}


class DummyGeocoder:
    async def geocode(self, address):
        return KNOWN_ADDRESSES.get(address)


class DummyBackend:
    """Visits the stops in reverse and charges 1 km / 1 min per leg."""

    async def compute_route(self, origin, destination, intermediates, optimize):
        legs = [Leg(distance_meters=1000.0, duration_seconds=60) for _ in range(len(intermediates) + 1)]
        order = list(reversed(range(len(intermediates)))) if optimize else None
        return BackendRoute(legs=legs, waypoint_order=order)


class NoAddressExtractor:
    async def extract(self, file_ids):
        return ExtractedJob(property_address=None)


@pytest.fixture
def store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def api_client(store: InMemoryJobStore) -> TestClient:
    app = create_app()
    geocoder = DummyGeocoder()
    orchestrator = RouteOrchestrator(store, RouteOptimizationGateway(DummyBackend()), geocoder)
    queue = ExtractionQueue(store, NoAddressExtractor(), geocoder)

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_extraction_queue] = lambda: queue
    return TestClient(app)


def _create(client: TestClient, address: str, **extra) -> dict:
    response = client.post("/api/jobs", json={"address": address, **extra}, headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoints(api_client: TestClient):
    assert api_client.get("/api/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["api_prefix"] == "/api"


def test_job_lifecycle(api_client: TestClient):
    job = _create(
        api_client,
        "1 Main St",
        summary="Repaint hallway",
        tasks=[{"id": "t1", "task_name": "Sand"}, {"id": "t2", "task_name": "Paint"}],
    )
    assert job["coordinates"] == {"lat": 40.01, "lng": -74.01}
    assert job["status"] == "pending"

    job_id = job["job_id"]
    updated = api_client.patch(f"/api/jobs/{job_id}", json={"notes": "Dog in yard"}, headers=HEADERS)
    assert updated.json()["notes"] == "Dog in yard"

    ticked = api_client.post(f"/api/jobs/{job_id}/tasks/t2", json={"completed": True}, headers=HEADERS)
    assert [task["completed"] for task in ticked.json()["tasks"]] == [False, True]

    reordered = api_client.post(f"/api/jobs/{job_id}/tasks/reorder", json={"task_ids": ["t2", "t1"]}, headers=HEADERS)
    assert [task["id"] for task in reordered.json()["tasks"]] == ["t2", "t1"]

    completed = api_client.post(f"/api/jobs/{job_id}/status", json={"status": "completed"}, headers=HEADERS)
    assert completed.json()["completed_on"] is not None

    stats = api_client.get("/api/jobs/stats", headers=HEADERS).json()
    assert stats == {"pending": 0, "completed": 1, "paid": 0}
    assert api_client.get("/api/jobs", params={"status": "completed"}, headers=HEADERS).json()[0]["job_id"] == job_id

    assert api_client.delete(f"/api/jobs/{job_id}", headers=HEADERS).status_code == 204
    assert api_client.get(f"/api/jobs/{job_id}", headers=HEADERS).status_code == 404


def test_jobs_are_scoped_to_the_caller(api_client: TestClient):
    job = _create(api_client, "1 Main St")

    response = api_client.get(f"/api/jobs/{job['job_id']}", headers={"X-User-Id": "tech-2"})

    assert response.status_code == 404
    assert api_client.get("/api/jobs", headers={"X-User-Id": "tech-2"}).json() == []


def test_invalid_status_is_rejected(api_client: TestClient):
    job = _create(api_client, "1 Main St")

    response = api_client.post(f"/api/jobs/{job['job_id']}/status", json={"status": "archived"}, headers=HEADERS)

    assert response.status_code == 422


def test_optimize_then_navigate_and_clear(api_client: TestClient):
    ids = [_create(api_client, address)["job_id"] for address in ("1 Main St", "2 Main St", "3 Main St")]

    response = api_client.post("/api/routes/optimize", json={"job_ids": ids, "location": HERE}, headers=HEADERS)

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["ordered_job_ids"] == list(reversed(ids))
    assert body["notifications"][0]["title"] == "Route optimized"
    assert body["totals"]["total_duration"] == "4 min"

    totals = api_client.get("/api/routes/totals", headers=HEADERS).json()
    assert totals["total_distance_value"] == 4000.0

    selected = api_client.get("/api/jobs/selected", headers=HEADERS).json()
    assert [job["job_id"] for job in selected] == list(reversed(ids))
    assert [job["route_order"] for job in selected] == [0, 1, 2]
    assert selected[0]["metrics"]["travel_time"] == "1 min"

    navigation = api_client.get("/api/routes/navigation-url", headers=HEADERS).json()
    assert navigation["stops"] == 3
    assert navigation["url"].startswith("https://www.google.com/maps/dir/?api=1")

    assert api_client.get("/api/routes/status", headers=HEADERS).json() == {"is_optimizing": False}

    cleared = api_client.post("/api/routes/clear", headers=HEADERS).json()
    assert cleared["success"] is True
    assert api_client.get("/api/routes/totals", headers=HEADERS).json() is None
    assert api_client.get("/api/jobs/selected", headers=HEADERS).json() == []


def test_recalculate_keeps_manual_order(api_client: TestClient):
    ids = [_create(api_client, address)["job_id"] for address in ("1 Main St", "2 Main St", "3 Main St")]

    response = api_client.post("/api/routes/recalculate", json={"job_ids": ids, "location": HERE}, headers=HEADERS)

    body = response.json()
    assert body["success"] is True
    assert body["ordered_job_ids"] == ids
    assert body["totals"]["total_duration_value"] == 180


def test_optimize_without_location_reports_reason(api_client: TestClient):
    job_id = _create(api_client, "1 Main St")["job_id"]

    response = api_client.post(
        "/api/routes/optimize",
        json={"job_ids": [job_id], "location_error": "permission_denied"},
        headers=HEADERS,
    )

    body = response.json()
    assert body["success"] is False
    assert body["close_modal"] is True
    assert body["notifications"][0]["title"] == "Location Required"


def test_optimize_with_unknown_address_keeps_modal_open(api_client: TestClient):
    good = _create(api_client, "1 Main St")["job_id"]
    bad = _create(api_client, "Nowhere Lane")["job_id"]

    body = api_client.post(
        "/api/routes/optimize", json={"job_ids": [good, bad], "location": HERE}, headers=HEADERS
    ).json()

    assert body["success"] is False
    assert body["close_modal"] is False
    assert "Nowhere Lane" in body["notifications"][0]["description"]


def test_nearby_check(api_client: TestClient):
    job_id = _create(api_client, "1 Main St")["job_id"]

    close = api_client.post(
        "/api/routes/nearby", json={"job_id": job_id, "location": {"lat": 40.0101, "lng": -74.0101}}, headers=HEADERS
    ).json()
    far = api_client.post("/api/routes/nearby", json={"job_id": job_id, "location": HERE}, headers=HEADERS).json()

    assert close["nearby"] is True
    assert far["nearby"] is False
    assert far["distance_km"] > 1
    missing = api_client.post("/api/routes/nearby", json={"job_id": "ghost", "location": HERE}, headers=HEADERS)
    assert missing.status_code == 404


def test_home_address_is_geocoded(api_client: TestClient):
    user = api_client.put("/api/users/me/home", json={"address": "9 Home Rd"}, headers=HEADERS).json()

    assert user["home_coordinates"] == {"lat": 40.5, "lng": -74.5}
    assert api_client.get("/api/users/me", headers=HEADERS).json()["home_address"] == "9 Home Rd"


def test_extraction_failures_are_listed_until_dismissed(store: InMemoryJobStore):
    app = create_app()
    queue = ExtractionQueue(store, NoAddressExtractor())
    app.dependency_overrides[get_extraction_queue] = lambda: queue

    with TestClient(app) as client:
        submitted = client.post("/api/extraction", json={"file_ids": ["f1"], "file_name": "scope.pdf"}, headers=HEADERS)
        assert submitted.status_code == 202
        queue_id = submitted.json()["queue_id"]

        items = []
        for _ in range(200):
            items = client.get("/api/extraction", headers=HEADERS).json()
            if items and items[0]["status"] == "failed":
                break
            time.sleep(0.01)

        assert items[0]["queue_id"] == queue_id
        assert items[0]["error"] == "Could not extract property address from the document."
        assert client.delete(f"/api/extraction/{queue_id}", headers={"X-User-Id": "tech-2"}).status_code == 404
        assert client.delete(f"/api/extraction/{queue_id}", headers=HEADERS).status_code == 204
        assert client.get("/api/extraction", headers=HEADERS).json() == []


def test_payment_and_receipts_flow(api_client: TestClient):
    job_id = _create(api_client, "1 Main St")["job_id"]
    api_client.post(f"/api/jobs/{job_id}/status", json={"status": "completed"}, headers=HEADERS)

    paid = api_client.post(
        f"/api/jobs/{job_id}/payment",
        json={"image_id": "img-1", "amount": 180.0, "date": "2025-03-13", "payer_name": "Pat Doe"},
        headers=HEADERS,
    )
    assert paid.status_code == 201
    payment = paid.json()
    assert api_client.get(f"/api/jobs/{job_id}", headers=HEADERS).json()["status"] == "paid"
    assert api_client.get(f"/api/jobs/{job_id}/payment", headers=HEADERS).json()["payer_name"] == "Pat Doe"

    for store_name, total in (("Hardware Barn", 12.5), ("Paint Depot", 7.5)):
        response = api_client.post(
            f"/api/jobs/{job_id}/receipts",
            json={"image_id": f"r-{store_name}", "store_name": store_name, "total": total, "date": "2025-03-12"},
            headers=HEADERS,
        )
        assert response.status_code == 201
    receipts = api_client.get(f"/api/jobs/{job_id}/receipts", headers=HEADERS).json()
    assert [receipt["store_name"] for receipt in receipts] == ["Hardware Barn", "Paint Depot"]
    assert api_client.get(f"/api/jobs/{job_id}/receipts/total", headers=HEADERS).json()["total"] == 20.0

    receipt_id = receipts[0]["receipt_id"]
    assert api_client.delete(f"/api/receipts/{receipt_id}", headers={"X-User-Id": "tech-2"}).status_code == 404
    assert api_client.delete(f"/api/receipts/{receipt_id}", headers=HEADERS).status_code == 204

    assert api_client.delete(f"/api/payments/{payment['payment_id']}", headers=HEADERS).status_code == 204
    reverted = api_client.get(f"/api/jobs/{job_id}", headers=HEADERS).json()
    assert (reverted["status"], reverted["paid_on"]) == ("completed", None)
    assert api_client.get(f"/api/jobs/{job_id}/payment", headers=HEADERS).json() is None


def test_payment_for_unknown_job_is_404(api_client: TestClient):
    response = api_client.post(
        "/api/jobs/ghost/payment", json={"image_id": "img-1", "amount": 1.0, "date": "2025-03-13"}, headers=HEADERS
    )

    assert response.status_code == 404


def test_theme_setting(api_client: TestClient):
    user = api_client.put("/api/users/me/settings", json={"theme": "dark"}, headers=HEADERS).json()

    assert user["theme"] == "dark"
    assert api_client.get("/api/users/me", headers=HEADERS).json()["theme"] == "dark"
    assert api_client.put("/api/users/me/settings", json={"theme": "neon"}, headers=HEADERS).status_code == 422


class StubPlaces:
    def __init__(self):
        self.calls = []

    async def suggest(self, query, near=None):
        self.calls.append((query, near))
        return [PlaceSuggestion(label="1 Main St, Springfield", place_id="p-1", main_text="1 Main St", secondary_text="Springfield")]


def test_place_suggestions(api_client: TestClient):
    places = StubPlaces()
    api_client.app.dependency_overrides[get_places_client] = lambda: places

    body = api_client.get("/api/places/suggestions", params={"q": "1 Main", "lat": 40.0, "lng": -74.0}).json()

    assert body == [
        {"label": "1 Main St, Springfield", "place_id": "p-1", "main_text": "1 Main St", "secondary_text": "Springfield"}
    ]
    assert places.calls == [("1 Main", Coordinates(40.0, -74.0))]


def test_place_suggestions_unconfigured(api_client: TestClient):
    api_client.app.dependency_overrides[get_places_client] = lambda: None

    assert api_client.get("/api/places/suggestions", params={"q": "1 Main"}).status_code == 503


class StubWeather:
    async def forecast(self, coordinates):
        return Weather(temp_max=68, precip_prob=20, condition="Cloudy", code=3)


def test_weather_refresh(api_client: TestClient):
    api_client.app.dependency_overrides[get_weather_client] = lambda: StubWeather()
    located = _create(api_client, "1 Main St")["job_id"]
    unlocated = _create(api_client, "Nowhere Lane")["job_id"]

    job = api_client.post(f"/api/jobs/{located}/weather", headers=HEADERS).json()

    assert job["weather"] == {"temp_max": 68, "precip_prob": 20.0, "condition": "Cloudy", "code": 3}
    assert api_client.post(f"/api/jobs/{unlocated}/weather", headers=HEADERS).status_code == 400


def test_completed_routed_job_leaves_route_on_reoptimize(api_client: TestClient):
    ids = [_create(api_client, address)["job_id"] for address in ("1 Main St", "2 Main St", "3 Main St")]
    api_client.post("/api/routes/optimize", json={"job_ids": ids, "location": HERE}, headers=HEADERS)
    api_client.post(f"/api/jobs/{ids[0]}/status", json={"status": "completed"}, headers=HEADERS)

    body = api_client.post("/api/routes/optimize", json={"job_ids": ids[1:], "location": HERE}, headers=HEADERS).json()

    assert body["success"] is True
    selected = api_client.get("/api/jobs/selected", headers=HEADERS).json()
    assert [job["job_id"] for job in selected] == list(reversed(ids[1:]))
    assert [job["route_order"] for job in selected] == [0, 1]
