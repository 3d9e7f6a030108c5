"""Job store selection."""

from __future__ import annotations

import logging
from functools import lru_cache

from .memory import InMemoryJobStore
from .store import JobStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_job_store() -> JobStore:
    """Supabase-backed store when configured, otherwise a process-local one."""
    from ..db.supabase import get_supabase_client
    from .database import SupabaseJobStore

    client = get_supabase_client()
    if client is None:
        logger.info("Using in-memory job store")
        return InMemoryJobStore()
    return SupabaseJobStore(client)


__all__ = ["JobStore", "InMemoryJobStore", "get_job_store"]
