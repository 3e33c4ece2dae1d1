from jose import jwt, JWTError
from typing import Optional, Dict, Any
import logging
from creditos.core.config import settings

logger = logging.getLogger(__name__)


# Decodes a Supabase access token, returning its claims or None when invalid or expired
def decode_token(token: str) -> Optional[Dict[str, Any]]:
    if not settings.SUPABASE_JWT_SECRET:
        logger.error("Cannot validate access token: SUPABASE_JWT_SECRET is not configured")
        return None
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.debug("Access token rejected: %s", e)
        return None
