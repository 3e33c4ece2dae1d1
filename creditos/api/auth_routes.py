from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from supabase import Client

from creditos.core.auth_dependencies import get_current_session
from creditos.database.connection import get_supabase
from creditos.schemas.user_schemas import SessionContext, Token, UserResponse
from creditos.services.auth_service import AuthService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)


def get_auth_service(client: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(client)


# Authenticates user credentials against Supabase and returns its access token
@router.post("/login", response_model=Token, status_code=status.HTTP_200_OK)
async def login_user(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service),
) -> Token:
    try:
        token_data = await service.login_user(form_data.username, form_data.password)
        return Token(**token_data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during login: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during login"
        )


# Retrieves the authenticated user's identity
@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def get_current_user_info(session: SessionContext = Depends(get_current_session)) -> UserResponse:
    return session.as_user()
