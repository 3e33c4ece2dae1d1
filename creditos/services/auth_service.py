import asyncio
import logging
from typing import Dict

from fastapi import HTTPException, status
from supabase import Client

logger = logging.getLogger(__name__)


class AuthService:
    """Password sign-in against Supabase Auth; Supabase owns users and passwords."""

    def __init__(self, client: Client):
        self.client = client

    # Authenticate user and return the Supabase session token
    async def login_user(self, email: str, password: str) -> Dict:
        logger.debug("Login attempt for email: %s", email)
        try:
            res = await asyncio.to_thread(
                self.client.auth.sign_in_with_password,
                {"email": email, "password": password},
            )
        except Exception as e:
            logger.warning("Supabase sign-in failed for %s: %s", email, e)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        session = getattr(res, "session", None)
        if session is None or not session.access_token:
            logger.warning("Supabase sign-in for %s returned no session", email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        # Never log the access token itself
        logger.debug("Supabase session created for %s", email)
        return {
            "access_token": session.access_token,
            "token_type": "bearer",
            "expires_in": session.expires_in,
            "user": {
                "id": str(res.user.id),
                "email": res.user.email,
                "role": getattr(res.user, "role", None),
            },
        }
