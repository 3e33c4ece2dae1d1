import logging
from supabase import create_client, Client
from creditos.core.config import settings, log_settings_summary

logger = logging.getLogger(__name__)


def get_supabase_client() -> Client:
    """Build the process-wide Supabase client from `settings`.

    The service role key bypasses row level security and is preferred; the anon
    key is accepted with a warning.

    Raises:
        RuntimeError: SUPABASE_URL or both keys are missing
    """
    if not settings.SUPABASE_URL:
        logger.error("SUPABASE_URL is not configured")
        raise RuntimeError("Supabase configuration missing: set SUPABASE_URL environment variable")

    key = settings.SUPABASE_SERVICE_ROLE or settings.SUPABASE_ANON_PUBLIC
    if not key:
        logger.error("No Supabase key configured (SUPABASE_SERVICE_ROLE or SUPABASE_ANON_PUBLIC)")
        raise RuntimeError("Supabase configuration missing: set SUPABASE_SERVICE_ROLE or SUPABASE_ANON_PUBLIC environment variable")

    if not settings.SUPABASE_SERVICE_ROLE:
        logger.warning("SUPABASE_SERVICE_ROLE not set; using SUPABASE_ANON_PUBLIC under row level security")

    log_settings_summary()
    return create_client(settings.SUPABASE_URL, key)
