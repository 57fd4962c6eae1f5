"""
Auth Router - club sign-up, login and session
"""
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from jose import jwt
from loguru import logger

from app.club.dependencies import ClubUserContext, get_current_club_user
from app.club.errors import (
    AuthenticationError,
    InvalidRequestError,
    PermissionDeniedError,
    auth_error_key,
)
from app.club.models import ClubRole
from app.club.settings import default_settings, normalize_hex
from database.supabase_client import get_supabase_client
from .config import get_auth_settings
from .models import ClubRegistration, LoginRequest, SessionUser, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a session JWT"""
    settings = get_auth_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def _session_response(user: SessionUser) -> JSONResponse:
    settings = get_auth_settings()
    access_token = create_access_token({
        "sub": user.user_id,
        "club_id": user.club_id,
        "role": user.role,
        "name": user.name,
    })
    body = TokenResponse(
        access_token=access_token,
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=user,
    )
    response = JSONResponse(content=body.model_dump(mode="json"))
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )
    return response


# =============================================
# Registration
# =============================================

@router.post("/register", status_code=201)
async def register_club(data: ClubRegistration):
    """
    Create a club and its owner account

    Creates the auth user, the club, the user -> club mapping, the
    super-admin club user and the default settings, then signs in.
    """
    settings = get_auth_settings()
    if len(data.password) < settings.MIN_PASSWORD_LENGTH:
        raise InvalidRequestError("auth.weak_password")

    supabase = get_supabase_client()

    try:
        auth_response = supabase.auth.sign_up({"email": data.email, "password": data.password})
    except Exception as e:
        logger.error(f"Sign-up failed for {data.email}: {e}")
        key = auth_error_key(e)
        if key:
            raise InvalidRequestError(key)
        raise InvalidRequestError("auth.register_failed", error=str(e))

    auth_user = getattr(auth_response, "user", None)
    if not auth_user:
        raise InvalidRequestError("auth.register_failed", error="no user returned")

    theme_color = normalize_hex(data.theme_color)
    try:
        club = supabase.table("clubs").insert({
            "name": data.club_name,
            "sport": data.sport,
            "owner_id": auth_user.id,
        }).execute().data[0]

        supabase.table("app_users").insert({
            "id": auth_user.id,
            "club_id": club["id"],
            "email": data.email,
        }).execute()

        club_user = supabase.table("club_users").insert({
            "club_id": club["id"],
            "auth_user_id": auth_user.id,
            "name": data.admin_name,
            "email": data.email,
            "role": ClubRole.super_admin.value,
        }).execute().data[0]

        supabase.table("club_settings").insert({
            "club_id": club["id"],
            **default_settings(theme_color),
        }).execute()
    except Exception as e:
        logger.exception(f"Club setup failed for {data.email}: {e}")
        raise InvalidRequestError("auth.register_failed", error=str(e))

    logger.info(f"Registered club {club['id']} ({data.club_name}) owned by {data.email}")

    response = _session_response(SessionUser(
        user_id=club_user["id"],
        club_id=club["id"],
        club_name=club["name"],
        name=data.admin_name,
        role=ClubRole.super_admin.value,
    ))
    response.status_code = 201
    return response


# =============================================
# Login
# =============================================

@router.post("/login")
async def login(data: LoginRequest):
    """Password login; the session token is returned and set as a cookie"""
    supabase = get_supabase_client()

    try:
        auth_response = supabase.auth.sign_in_with_password(
            {"email": data.email, "password": data.password}
        )
    except Exception as e:
        logger.warning(f"Login failed for {data.email}: {e}")
        raise AuthenticationError("auth.invalid_credentials")

    auth_user = getattr(auth_response, "user", None)
    if not auth_user:
        raise AuthenticationError("auth.invalid_credentials")

    mapping = supabase.table("app_users").select("*").eq("id", auth_user.id).limit(1).execute()
    if not mapping.data or not mapping.data[0].get("club_id"):
        raise PermissionDeniedError("auth.no_club")
    club_id = mapping.data[0]["club_id"]

    result = supabase.table("club_users").select("*").eq(
        "club_id", club_id
    ).eq("auth_user_id", auth_user.id).limit(1).execute()
    if not result.data:
        result = supabase.table("club_users").select("*").eq(
            "club_id", club_id
        ).eq("email", data.email).limit(1).execute()
    if not result.data:
        raise PermissionDeniedError("auth.no_club")
    club_user = result.data[0]

    club = supabase.table("clubs").select("name").eq("id", club_id).limit(1).execute()

    return _session_response(SessionUser(
        user_id=club_user["id"],
        club_id=club_id,
        club_name=club.data[0].get("name") if club.data else None,
        name=club_user.get("name") or data.email,
        role=club_user["role"],
    ))


# =============================================
# Session
# =============================================

@router.get("/me", response_model=SessionUser)
async def get_me(user: ClubUserContext = Depends(get_current_club_user)):
    """Signed-in user"""
    supabase = get_supabase_client()
    club = supabase.table("clubs").select("name").eq("id", user.club_id).limit(1).execute()
    return SessionUser(
        user_id=user.user_id,
        club_id=user.club_id,
        club_name=club.data[0].get("name") if club.data else None,
        name=user.name,
        role=ClubRole(user.role).value,
    )


@router.post("/logout")
async def logout():
    response = JSONResponse(content={"success": True})
    response.delete_cookie("access_token")
    return response
