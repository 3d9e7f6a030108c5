import asyncio
import json

import httpx
import pytest

from src.fieldroute.config import settings
from src.fieldroute.errors import GatewayError
from src.fieldroute.models.domain import Coordinates
from src.fieldroute.services.geocoding import GeocodingClient, PlacesClient, PlaceSuggestion, clean_address

GEOCODE_URL = "https://geocode.test/json"


def _ok(lat: float, lng: float) -> dict:
    return {"status": "OK", "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}}]}


def _run_geocode(handler, address: str, **kwargs):
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            geocoder = GeocodingClient(api_key="test-key", base_url=GEOCODE_URL, client=client, **kwargs)
            return await geocoder.geocode(address)

    return asyncio.run(_go())


def test_geocode_returns_first_result():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(dict(request.url.params))
        return httpx.Response(200, json=_ok(40.7, -74.0))

    result = _run_geocode(handler, "1 Broadway, New York")

    assert result == Coordinates(lat=40.7, lng=-74.0)
    assert seen == [{"address": "1 Broadway, New York", "key": "test-key"}]


def test_geocode_retries_with_cleaned_address():
    addresses = []

    def handler(request: httpx.Request) -> httpx.Response:
        address = request.url.params["address"]
        addresses.append(address)
        if address == "123 Main St":
            return httpx.Response(200, json=_ok(35.1, -80.8))
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

    result = _run_geocode(handler, "123 Main St, Apt 4B")

    assert result == Coordinates(lat=35.1, lng=-80.8)
    assert addresses == ["123 Main St, Apt 4B", "123 Main St"]


def test_geocode_skips_retry_when_cleaned_address_too_short():
    addresses = []

    def handler(request: httpx.Request) -> httpx.Response:
        addresses.append(request.url.params["address"])
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

    assert _run_geocode(handler, "Apt 4B") is None
    assert addresses == ["Apt 4B"]


def test_geocode_returns_none_when_retry_also_fails():
    addresses = []

    def handler(request: httpx.Request) -> httpx.Response:
        addresses.append(request.url.params["address"])
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

    assert _run_geocode(handler, "999 Nowhere Rd Suite 12") is None
    assert addresses == ["999 Nowhere Rd Suite 12", "999 Nowhere Rd"]


def test_geocode_skips_retry_when_nothing_to_clean():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.params["address"])
        return httpx.Response(500, text="upstream error")

    assert _run_geocode(handler, "42 Elm Street") is None
    assert calls == ["42 Elm Street"]


def test_geocode_transport_error_raises_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError):
        _run_geocode(handler, "1 Broadway")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("123 Main St, Apt 4B", "123 Main St"),
        ("456 Oak Ave Suite 200", "456 Oak Ave"),
        ("789 Pine Rd #12", "789 Pine Rd"),
        ("10 High St, Unit 3, Springfield", "10 High St, Springfield"),
        ("12 Community Dr", "12 Community Dr"),
        ("Apt 4B", ""),
    ],
)
def test_clean_address(raw, expected):
    assert clean_address(raw) == expected


def test_geocoder_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "google_maps_api_key", None)

    with pytest.raises(ValueError):
        GeocodingClient()


PLACES_URL = "https://places.test/v1/places:autocomplete"


def _suggest(handler, query: str, near=None):
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            places = PlacesClient(api_key="test-key", base_url=PLACES_URL, client=client)
            return await places.suggest(query, near)

    return asyncio.run(_go())


def test_place_suggestions_are_mapped_from_predictions():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "suggestions": [
                    {
                        "placePrediction": {
                            "placeId": "p-1",
                            "text": {"text": "12 Elm St, Springfield, IL, USA"},
                            "structuredFormat": {
                                "mainText": {"text": "12 Elm St"},
                                "secondaryText": {"text": "Springfield, IL, USA"},
                            },
                        }
                    },
                    {"queryPrediction": {"text": {"text": "12 elm street hardware"}}},
                ]
            },
        )

    suggestions = _suggest(handler, "12 Elm")

    assert suggestions == [
        PlaceSuggestion(
            label="12 Elm St, Springfield, IL, USA",
            place_id="p-1",
            main_text="12 Elm St",
            secondary_text="Springfield, IL, USA",
        )
    ]
    request = requests[0]
    assert request.method == "POST"
    assert request.headers["X-Goog-Api-Key"] == "test-key"
    body = json.loads(request.content)
    assert body == {"input": "12 Elm", "includedRegionCodes": ["us", "ca", "gb"]}


def test_place_suggestions_are_biased_toward_the_caller():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={})

    assert _suggest(handler, "Main", near=Coordinates(lat=40.0, lng=-74.0)) == []
    assert bodies[0]["locationBias"] == {
        "circle": {"center": {"latitude": 40.0, "longitude": -74.0}, "radius": 50000.0}
    }


def test_short_queries_are_not_sent():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    assert _suggest(handler, "1") == []
    assert _suggest(handler, " ") == []
    assert calls == []


def test_place_suggestion_errors_raise_gateway_error():
    with pytest.raises(GatewayError):
        _suggest(lambda request: httpx.Response(403, json={"error": "denied"}), "12 Elm")
