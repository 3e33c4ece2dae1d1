from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from creditos.core.security import decode_token
from creditos.schemas.user_schemas import SessionContext
import logging

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# Validates the Supabase bearer token and builds the request-scoped session
async def get_current_session(token: str = Depends(oauth2_scheme)) -> SessionContext:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if payload is None:
        logger.warning("Token validation failed")
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        logger.debug("No 'sub' field in token payload.")
        raise credentials_exception

    logger.debug("Authenticated request for user: %s", user_id)
    return SessionContext(
        user_id=user_id,
        email=payload.get("email"),
        role=payload.get("role"),
        access_token=token,
    )
