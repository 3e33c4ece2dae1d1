import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class Settings:
    PROJECT_NAME: str = "Creditos Management API"
    SUPABASE_URL: str = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE: str = os.getenv("SUPABASE_SERVICE_ROLE")
    SUPABASE_ANON_PUBLIC: str = os.getenv("SUPABASE_ANON_PUBLIC")
    # Supabase signs user access tokens with the project's JWT secret
    SUPABASE_JWT_SECRET: str = os.getenv("SUPABASE_JWT_SECRET")
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = os.getenv("JWT_AUDIENCE", "authenticated")
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:3000")
    EXPEDIENTES_BUCKET: str = os.getenv("EXPEDIENTES_BUCKET", "expedientes")
    MAX_UPLOAD_SIZE: int = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))
    REDIS_URL: str = os.getenv("REDIS_URL")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


def _mask_secret(val: str) -> str:
    if not val:
        return "<missing>"
    if len(val) <= 8:
        return "*" * len(val)
    return f"{val[:4]}...{val[-4:]}"


def _mask_url(url: str) -> str:
    # Keep scheme and host, but strip credentials and path
    try:
        from urllib.parse import urlparse
        p = urlparse(url)
        netloc = p.hostname or ""
        if p.port:
            netloc = f"{netloc}:{p.port}"
        return f"{p.scheme}://{netloc}"
    except Exception:
        return _mask_secret(url)


def log_settings_summary() -> None:
    """Log the loaded Supabase settings with every secret redacted."""
    logger.debug(
        "Loaded Supabase settings (redacted): %s",
        {
            "SUPABASE_URL": _mask_url(settings.SUPABASE_URL) if settings.SUPABASE_URL else None,
            "SUPABASE_SERVICE_ROLE": _mask_secret(settings.SUPABASE_SERVICE_ROLE),
            "SUPABASE_ANON_PUBLIC": _mask_secret(settings.SUPABASE_ANON_PUBLIC),
            "SUPABASE_JWT_SECRET": _mask_secret(settings.SUPABASE_JWT_SECRET),
        },
    )
    if not settings.SUPABASE_JWT_SECRET:
        logger.warning("SUPABASE_JWT_SECRET is missing or empty; every authenticated request will be rejected")
