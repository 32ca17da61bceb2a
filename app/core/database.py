from functools import lru_cache
from supabase import create_client, Client
from app.core.config import settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Build the shared Supabase client on first use.
    The service key is preferred so inserts are not blocked by RLS.
    """
    if not settings.SUPABASE_URL:
        raise RuntimeError("Server misconfigured: Missing SUPABASE_URL")

    key_to_use = settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY
    if not key_to_use:
        raise RuntimeError("Server misconfigured: Missing Supabase key")

    return create_client(settings.SUPABASE_URL, key_to_use)


def get_db() -> Client:
    """
    Dependency to get the database client.
    """
    return get_supabase()
