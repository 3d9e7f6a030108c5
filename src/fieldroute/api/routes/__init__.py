"""Route group exports."""

from . import extraction, health, jobs, ledger, places, routes, users

__all__ = ["extraction", "health", "jobs", "ledger", "places", "routes", "users"]
