import asyncio

import httpx
import pytest

from src.fieldroute.errors import GatewayError
from src.fieldroute.models.domain import Coordinates, Job, Weather
from src.fieldroute.persistence.memory import InMemoryJobStore
from src.fieldroute.services.weather import WeatherClient, condition_for, refresh_job_weather, simple_code

USER = "user-1"
WEATHER_URL = "https://weather.test/v1/forecast"
SITE = Coordinates(lat=40.7, lng=-74.0)


def _daily(code: int, temp: float = 71.6, precip=40) -> dict:
    return {
        "daily": {
            "time": ["2025-03-14"],
            "weather_code": [code],
            "temperature_2m_max": [temp],
            "precipitation_probability_max": [precip],
        }
    }


def _forecast(handler, coordinates: Coordinates = SITE):
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await WeatherClient(base_url=WEATHER_URL, client=client).forecast(coordinates)

    return asyncio.run(_go())


def test_forecast_requests_today_in_fahrenheit():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(dict(request.url.params))
        return httpx.Response(200, json=_daily(63))

    weather = _forecast(handler)

    assert weather == Weather(temp_max=72, precip_prob=40, condition="Rainy", code=61)
    assert seen[0]["latitude"] == "40.7"
    assert seen[0]["longitude"] == "-74.0"
    assert seen[0]["temperature_unit"] == "fahrenheit"
    assert seen[0]["forecast_days"] == "1"
    assert seen[0]["daily"] == "weather_code,temperature_2m_max,precipitation_probability_max"


def test_forecast_error_response_is_none():
    assert _forecast(lambda request: httpx.Response(503, text="busy")) is None


def test_forecast_without_daily_block_is_none():
    assert _forecast(lambda request: httpx.Response(200, json={"error": True})) is None


def test_forecast_transport_error_raises_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError):
        _forecast(handler)


@pytest.mark.parametrize(
    "code, condition",
    [
        (0, "Sunny"),
        (2, "Cloudy"),
        (45, "Foggy"),
        (61, "Rainy"),
        (67, "Rainy"),
        (73, "Snowy"),
        (81, "Showers"),
        (86, "Snow Showers"),
        (95, "Thunderstorm"),
    ],
)
def test_condition_labels(code, condition):
    assert condition_for(code) == condition


@pytest.mark.parametrize(
    "code, icon",
    [
        (0, 0),
        (1, 3),
        (48, 3),
        (53, 61),
        (57, 71),
        (63, 61),
        (66, 71),
        (75, 71),
        (76, 61),
        (77, 71),
        (80, 61),
        (85, 71),
        (90, 3),
        (95, 95),
        (99, 95),
    ],
)
def test_simple_codes(code, icon):
    assert simple_code(code) == icon


class StubWeather:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def forecast(self, coordinates):
        self.calls.append(coordinates)
        return self.result


def _store(coordinates=SITE, weather=None) -> InMemoryJobStore:
    store = InMemoryJobStore()
    asyncio.run(
        store.create_job(Job(job_id="A", user_id=USER, address="1 Main St", coordinates=coordinates, weather=weather))
    )
    return store


def test_refresh_stores_forecast_on_the_job():
    store = _store()
    sunny = Weather(temp_max=80, precip_prob=0, condition="Sunny", code=0)
    client = StubWeather(sunny)

    job = asyncio.run(refresh_job_weather(store, client, USER, "A"))

    assert client.calls == [SITE]
    assert job.weather == sunny
    assert asyncio.run(store.get_job(USER, "A")).weather == sunny


def test_failed_refresh_keeps_previous_forecast():
    previous = Weather(temp_max=50, precip_prob=10, condition="Cloudy", code=3)
    store = _store(weather=previous)

    job = asyncio.run(refresh_job_weather(store, StubWeather(None), USER, "A"))

    assert job.weather == previous


def test_refresh_needs_coordinates():
    store = _store(coordinates=None)

    with pytest.raises(ValueError):
        asyncio.run(refresh_job_weather(store, StubWeather(None), USER, "A"))
