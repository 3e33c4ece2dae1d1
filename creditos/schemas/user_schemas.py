from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class UserResponse(BaseModel):
    id: str = Field(..., description="Supabase auth user id")
    email: Optional[EmailStr] = Field(None, description="Email address of the user")
    role: Optional[str] = Field(None, description="Supabase role claim")


class Token(BaseModel):
    access_token: str = Field(..., description="Supabase access token for the user")
    token_type: str = Field(default="bearer", description="Type of the token")
    expires_in: Optional[int] = Field(None, description="Seconds until the access token expires")
    user: Optional[UserResponse] = None


class SessionContext(BaseModel):
    """The authenticated principal of one request, passed explicitly to whatever needs it."""
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    access_token: str = Field(..., repr=False)

    def as_user(self) -> UserResponse:
        return UserResponse(id=self.user_id, email=self.email, role=self.role)
