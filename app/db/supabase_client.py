"""Supabase client for the Record Store and the weight store."""

from functools import lru_cache

from supabase import Client, create_client

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.readiness.errors import ReadinessError

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get the shared Supabase client.

    The service role key bypasses row-level security, so every write path
    checks the caller's capability before issuing a query.

    Raises:
        ReadinessError: If the client cannot be created
    """
    settings = get_settings()
    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise ReadinessError(f"Failed to initialize Supabase client: {e}") from e

    logger.debug(f"Connected Supabase client for {settings.SUPABASE_URL}")
    return client
