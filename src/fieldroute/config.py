"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Field Route Planner API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level.")

    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="API key used for both the Geocoding and Routes APIs.",
    )
    geocoding_url: str = Field(
        default="https://maps.googleapis.com/maps/api/geocode/json",
        description="Geocoding endpoint accepting a free-text address.",
    )
    routes_url: str = Field(
        default="https://routes.googleapis.com/directions/v2:computeRoutes",
        description="Routes API endpoint used for multi-stop optimization.",
    )
    places_autocomplete_url: str = Field(
        default="https://places.googleapis.com/v1/places:autocomplete",
        description="Places API endpoint used for address suggestions.",
    )
    place_region_codes: tuple[str, ...] = Field(default=("us", "ca", "gb"))
    place_bias_radius_meters: float = Field(default=50000.0, gt=0.0)
    weather_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        description="Open-Meteo forecast endpoint; needs no API key.",
    )
    routing_provider: Literal["google", "osrm"] = Field(
        default="google",
        description="Backend used for route optimization and fixed-order metrics.",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing travel times.",
    )
    travel_mode: str = Field(default="DRIVE")
    routing_preference: str = Field(default="TRAFFIC_AWARE")
    http_timeout_seconds: float = Field(default=30.0, gt=0.0)
    location_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Bounded wait for the device location before reporting a timeout.",
    )
    geocode_min_cleaned_length: int = Field(
        default=6,
        ge=1,
        description="A cleaned address shorter than this is never re-queried.",
    )
    nearby_threshold_km: float = Field(default=0.2, ge=0.0)

    default_user_id: str = Field(
        default="local-user",
        description="Identity used when a request carries no X-User-Id header.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("frontend_allowed_origins", "place_region_codes", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        return str(value or "INFO").strip().upper()


settings = Settings()
