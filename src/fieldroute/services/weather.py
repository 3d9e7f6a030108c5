"""Daily forecast lookups for job sites."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..config import settings
from ..errors import GatewayError
from ..models.domain import Coordinates, Job, Weather
from ..persistence.store import JobStore

logger = logging.getLogger(__name__)

# Upper bounds of WMO weather-code bands, checked in order.
_CONDITIONS = (
    (0, "Sunny"),
    (3, "Cloudy"),
    (48, "Foggy"),
    (67, "Rainy"),
    (77, "Snowy"),
    (82, "Showers"),
    (86, "Snow Showers"),
)


def condition_for(code: int) -> str:
    for upper, label in _CONDITIONS:
        if code <= upper:
            return label
    return "Thunderstorm"


_ICONS = (
    (0, 0),
    (48, 3),
    (55, 61),
    (57, 71),
    (65, 61),
    (75, 71),
    (76, 61),
    (77, 71),
    (82, 61),
    (86, 71),
    (94, 3),
)


def simple_code(code: int) -> int:
    """Collapse a WMO code onto the icon set: 0 clear, 3 cloud, 61 rain, 71 snow, 95 storm."""
    for upper, icon in _ICONS:
        if code <= upper:
            return icon
    return 95


class WeatherClient:
    """Fetches today's forecast from an Open-Meteo compatible endpoint.

    ``forecast`` returns None when the service answers with an error or an
    unusable body; transport failures raise :class:`GatewayError`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url or settings.weather_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._client = client

    async def forecast(self, coordinates: Coordinates) -> Optional[Weather]:
        params = {
            "latitude": coordinates.lat,
            "longitude": coordinates.lng,
            "daily": "weather_code,temperature_2m_max,precipitation_probability_max",
            "temperature_unit": "fahrenheit",
            "timezone": "auto",
            "forecast_days": 1,
        }
        client = self._client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))
        try:
            response = await client.get(self.base_url, params=params)
        except httpx.HTTPError as exc:
            logger.warning(f"Weather request failed for {coordinates.as_tuple()}: {exc}")
            raise GatewayError(f"Weather service is not reachable: {exc}") from exc
        finally:
            if client is not self._client:
                await client.aclose()

        if response.is_error:
            logger.warning(f"Weather API returned HTTP {response.status_code}")
            return None
        try:
            return _weather_from(response.json())
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("Weather API returned an unusable body")
            return None


def _weather_from(data: dict[str, Any]) -> Weather:
    daily = data["daily"]
    code = int(daily["weather_code"][0])
    precip = daily.get("precipitation_probability_max") or [None]
    return Weather(
        temp_max=round(float(daily["temperature_2m_max"][0])),
        precip_prob=precip[0],
        condition=condition_for(code),
        code=simple_code(code),
    )


async def refresh_job_weather(store: JobStore, weather: WeatherClient, user_id: str, job_id: str) -> Job:
    """Store today's forecast on the job; a failed lookup keeps the previous one."""
    job = await store.get_job(user_id, job_id)
    if job.coordinates is None:
        raise ValueError("Job has no coordinates; set or geocode its address first.")
    forecast = await weather.forecast(job.coordinates)
    if forecast is None:
        return job
    return await store.update_job(user_id, job_id, weather=forecast)
