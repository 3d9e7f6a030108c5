#!/usr/bin/env python3
"""Helper script to check and create the .env file for the route planner."""

from pathlib import Path
import os
import sys

TEMPLATE = """# Google Maps Platform (Geocoding + Routes APIs)
FIELDROUTE_GOOGLE_MAPS_API_KEY=your-google-maps-key

# Routing backend: google or osrm
FIELDROUTE_ROUTING_PROVIDER=google
# FIELDROUTE_OSRM_BASE_URL=http://localhost:5000

# Supabase (optional; jobs are kept in memory when unset)
# Get these from: https://supabase.com/dashboard -> Your Project -> Settings -> API
FIELDROUTE_SUPABASE_URL=https://your-project-id.supabase.co
FIELDROUTE_SUPABASE_KEY=your-service-role-key-here

# API Configuration
FIELDROUTE_API_PREFIX=/api
FIELDROUTE_LOG_LEVEL=INFO
# FIELDROUTE_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated list
"""


def _mask(value: str, keep: int = 20) -> str:
    return value if len(value) <= keep + 10 else f"{value[:keep]}...{value[-6:]}"


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Route Planner Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        print("Creating template .env file...")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created .env file at: {env_file}")
        print("⚠️  Please edit .env and add your API keys!")
        return

    print(f"✅ Found .env file at: {env_file}")
    print()

    for name in ("FIELDROUTE_GOOGLE_MAPS_API_KEY", "FIELDROUTE_SUPABASE_URL", "FIELDROUTE_SUPABASE_KEY"):
        value = os.getenv(name)
        if value:
            print(f"✅ {name} (from environment): {_mask(value)}")
        else:
            print(f"ℹ️  {name} not set in environment (may still come from .env)")
    print()

    print("Testing config loading...")
    try:
        sys.path.insert(0, str(project_root / "src"))
        from fieldroute.config import settings

        print(f"  routing provider: {settings.routing_provider}")
        print(f"  geocoding/routes key: {'set' if settings.google_maps_api_key else 'MISSING'}")
        if settings.routing_provider == "osrm":
            print(f"  OSRM base URL: {settings.osrm_base_url or 'MISSING'}")
        store = "supabase" if settings.supabase_url and settings.supabase_key else "in-memory"
        print(f"  job store: {store}")
        print()

        ready = bool(settings.google_maps_api_key) or (
            settings.routing_provider == "osrm" and settings.osrm_base_url
        )
        print("=" * 60)
        print("✅ SUCCESS: route planning is configured" if ready else "❌ ERROR: routing is NOT configured")
        print("=" * 60)
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")


if __name__ == "__main__":
    main()
