"""
Auth Models - request and response bodies
"""
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


# =============================================
# Request Models
# =============================================

class ClubRegistration(BaseModel):
    """Club sign-up: creates the club and its owner account"""
    club_name: str = Field(..., min_length=2, max_length=100)
    sport: str = Field(..., min_length=2, max_length=50)
    admin_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)
    theme_color: str = Field("#2563eb", pattern=r"^#?[0-9a-fA-F]{6}$")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# =============================================
# Response Models
# =============================================

class SessionUser(BaseModel):
    """Signed-in user as seen by the client"""
    user_id: str
    club_id: str
    club_name: Optional[str] = None
    name: str
    role: str


class TokenResponse(BaseModel):
    """Session token"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: SessionUser
