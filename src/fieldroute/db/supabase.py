"""Supabase client for the job store."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.info("Supabase credentials not configured; jobs are kept in memory")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Expected tables:
#
#   jobs(id text pk, user_id text, address text, lat float8, lng float8,
#        selected_for_route bool, route_order int, travel_time text, distance text,
#        travel_time_value int, distance_value float8, status text, summary text,
#        tasks jsonb, access_codes text[], due_date text, notes text,
#        source_file_ids text[], completed_on text, paid_on text, weather jsonb,
#        created_at float8)
#   route_totals(user_id text pk, total_distance text, total_duration text,
#                total_distance_value float8, total_duration_value int)
#   users(id text pk, email text, name text, home_address text,
#         home_lat float8, home_lng float8, theme text)
#   payments(id text pk, user_id text, job_id text, image_id text, amount float8,
#            date text, payer_name text, detected_address text, created_at float8)
#   receipts(id text pk, user_id text, job_id text, image_id text, store_name text,
#            total float8, date text, store_location text, summary text, created_at float8)
