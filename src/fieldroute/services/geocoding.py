"""HTTP clients for address geocoding and autocomplete."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from ..config import settings
from ..errors import GatewayError
from ..models.domain import Coordinates

logger = logging.getLogger(__name__)

# Unit, suite and similar designators that commonly make an address ungeocodable.
_UNIT_PATTERN = re.compile(
    r"[,]?\s*\b(?:unit|suite|apt|apartment|room|bldg|building|floor)\b\.?\s*[\w-]+",
    re.IGNORECASE,
)
_HASH_UNIT_PATTERN = re.compile(r"[,]?\s*#[\w-]+")
_WHITESPACE = re.compile(r"\s+")


def clean_address(address: str) -> str:
    """Strip unit/suite/apartment designators and collapse whitespace."""

    cleaned = _UNIT_PATTERN.sub("", address)
    cleaned = _HASH_UNIT_PATTERN.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


class GeocodingClient:
    """Turns a free-text address into coordinates.

    ``geocode`` returns None for addresses the backend cannot locate; that is
    an expected outcome and callers should ask the user to fix the address.
    Transport failures raise :class:`GatewayError`. Results are not cached.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        min_cleaned_length: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Geocoding API key is not configured.")
        self.base_url = base_url or settings.geocoding_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.min_cleaned_length = (
            min_cleaned_length if min_cleaned_length is not None else settings.geocode_min_cleaned_length
        )
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))

    async def geocode(self, address: str) -> Coordinates | None:
        client = self._get_client()
        try:
            coordinates = await self._lookup(client, address)
            if coordinates is not None:
                return coordinates

            cleaned = clean_address(address)
            if cleaned != address and len(cleaned) >= self.min_cleaned_length:
                logger.debug(f"Retrying geocode with cleaned address '{cleaned}'")
                return await self._lookup(client, cleaned)
            return None
        finally:
            if client is not self._client:
                await client.aclose()

    async def _lookup(self, client: httpx.AsyncClient, address: str) -> Coordinates | None:
        try:
            response = await client.get(self.base_url, params={"address": address, "key": self.api_key})
        except httpx.HTTPError as exc:
            logger.warning(f"Geocoding request failed for '{address}': {exc}")
            raise GatewayError(f"Geocoding service is not reachable: {exc}") from exc

        if response.is_error:
            logger.warning(f"Geocoding returned HTTP {response.status_code} for '{address}'")
            return None
        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Geocoding returned a non-JSON body for '{address}'")
            return None

        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            return None
        try:
            location = results[0]["geometry"]["location"]
            return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Geocoding result for '{address}' is missing a location")
            return None


@dataclass(slots=True, frozen=True)
class PlaceSuggestion:
    label: str
    place_id: str
    main_text: str
    secondary_text: str


class PlacesClient:
    """Address autocomplete backed by the Places API.

    Queries shorter than two characters are answered locally with no
    suggestions. Transport failures and error responses raise
    :class:`GatewayError`.
    """

    min_query_length = 2

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        region_codes: Sequence[str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Places API key is not configured.")
        self.base_url = base_url or settings.places_autocomplete_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.region_codes = list(region_codes if region_codes is not None else settings.place_region_codes)
        self._client = client

    async def suggest(self, query: str, near: Coordinates | None = None) -> list[PlaceSuggestion]:
        if len(query.strip()) < self.min_query_length:
            return []

        body: dict[str, Any] = {"input": query, "includedRegionCodes": self.region_codes}
        if near is not None:
            body["locationBias"] = {
                "circle": {
                    "center": {"latitude": near.lat, "longitude": near.lng},
                    "radius": settings.place_bias_radius_meters,
                }
            }

        client = self._client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))
        try:
            response = await client.post(
                self.base_url,
                json=body,
                headers={"Content-Type": "application/json", "X-Goog-Api-Key": self.api_key},
            )
        except httpx.HTTPError as exc:
            logger.warning(f"Places request failed for '{query}': {exc}")
            raise GatewayError(f"Places service is not reachable: {exc}") from exc
        finally:
            if client is not self._client:
                await client.aclose()

        if response.is_error:
            logger.warning(f"Places API returned HTTP {response.status_code}: {response.text[:200]}")
            raise GatewayError(f"Places API error: HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise GatewayError("Places API returned a non-JSON body") from exc

        suggestions = []
        for item in data.get("suggestions") or []:
            prediction = item.get("placePrediction")
            if not prediction:
                continue
            structured = prediction.get("structuredFormat") or {}
            suggestions.append(
                PlaceSuggestion(
                    label=(prediction.get("text") or {}).get("text", ""),
                    place_id=prediction.get("placeId", ""),
                    main_text=(structured.get("mainText") or {}).get("text", ""),
                    secondary_text=(structured.get("secondaryText") or {}).get("text", ""),
                )
            )
        return suggestions
