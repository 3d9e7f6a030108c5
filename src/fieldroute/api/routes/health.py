"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_osrm_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.osrm_client import check_health as osrm_health_check
    return osrm_health_check


@router.get("/health/routing", status_code=status.HTTP_200_OK)
def health_routing() -> dict:
    """Report whether the configured routing backend can be used."""
    provider = settings.routing_provider
    if provider == "osrm":
        try:
            healthy = _get_osrm_health_check()()
            return {"service": "osrm", "configured": bool(settings.osrm_base_url), "healthy": healthy}
        except Exception as e:
            return {"service": "osrm", "configured": bool(settings.osrm_base_url), "healthy": False, "error": str(e)}
    configured = bool(settings.google_maps_api_key)
    return {"service": "google", "configured": configured, "healthy": configured}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check which job store is in use and whether Supabase answers."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "store": "memory",
            "message": "Supabase not configured. Set FIELDROUTE_SUPABASE_URL and FIELDROUTE_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table("jobs").select("id", count="exact").limit(1).execute()
        return {"configured": True, "store": "supabase", "connected": True, "message": "Database connected."}
    except Exception as exc:
        return {
            "configured": True,
            "store": "supabase",
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
