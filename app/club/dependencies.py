"""
Club Management Dependencies

Authentication and permission dependencies
"""

import os
from typing import Optional
from fastapi import Depends, Request
from jose import jwt, JWTError

from app.auth.config import get_auth_settings
from app.i18n import negotiate_locale
from database.supabase_client import ClubTable
from .errors import AuthenticationError, PermissionDeniedError
from .models import ClubRole, ADMIN_ROLES, STAFF_ROLES

# Test mode
# enabled with CLUB_TEST_MODE=1 or the ?test=1 query parameter
TEST_MODE_ENV = os.getenv("CLUB_TEST_MODE", "0") == "1"

TEST_CLUB_CONFIG = {
    "user_id": "00000000-0000-0000-0000-000000000001",
    "club_id": "00000000-0000-0000-0000-0000000000c1",
    "name": "Test Admin",
    "role": ClubRole.super_admin,
}


def get_locale(request: Request) -> str:
    """Locale requested by the caller"""
    return negotiate_locale(
        request.headers.get("Accept-Language"),
        request.query_params.get("lang")
    )


def extract_token(request: Request) -> Optional[str]:
    """Bearer token or the access_token cookie"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ")[1]
    return request.cookies.get("access_token")


class ClubUserContext:
    """Signed-in club user"""

    def __init__(
        self,
        user_id: str,
        club_id: str,
        role: ClubRole,
        name: str,
        locale: str = "es"
    ):
        self.user_id = user_id
        self.club_id = club_id
        self.role = role
        self.name = name
        self.locale = locale

    def is_admin(self) -> bool:
        """super-admin or Admin"""
        return self.role in ADMIN_ROLES

    def is_staff(self) -> bool:
        """Admin or Coach"""
        return self.role in STAFF_ROLES


async def get_current_club_user(request: Request) -> ClubUserContext:
    """
    Resolve the signed-in club user from the session JWT and the
    club_users row it names.

    Test mode:
    - CLUB_TEST_MODE=1 environment variable
    - or the ?test=1 query parameter
    - signs in as the super-admin of the test club
    """
    locale = get_locale(request)

    test_param = request.query_params.get("test", "0")
    if TEST_MODE_ENV or (test_param == "1" and get_auth_settings().ALLOW_TEST_PARAM):
        return ClubUserContext(
            user_id=TEST_CLUB_CONFIG["user_id"],
            club_id=TEST_CLUB_CONFIG["club_id"],
            role=TEST_CLUB_CONFIG["role"],
            name=TEST_CLUB_CONFIG["name"],
            locale=locale
        )

    token = extract_token(request)
    if not token:
        raise AuthenticationError("auth.required")

    settings = get_auth_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise AuthenticationError("auth.invalid_token")

    user_id = payload.get("sub")
    club_id = payload.get("club_id")
    if not user_id:
        raise AuthenticationError("auth.invalid_token")
    if not club_id:
        raise PermissionDeniedError("auth.no_club")

    # role and name come from the current row, so removed or demoted users
    # lose access before their token expires
    member = ClubTable("club_users", club_id).get(user_id)
    if not member:
        raise AuthenticationError("auth.invalid_token")

    try:
        role = ClubRole(member.get("role"))
    except ValueError:
        raise AuthenticationError("auth.invalid_token")

    return ClubUserContext(
        user_id=user_id,
        club_id=club_id,
        role=role,
        name=member.get("name") or payload.get("name", ""),
        locale=locale
    )


def require_admin(user: ClubUserContext = Depends(get_current_club_user)) -> ClubUserContext:
    """Administrator required"""
    if not user.is_admin():
        raise PermissionDeniedError("auth.admin_required")
    return user


def require_staff(user: ClubUserContext = Depends(get_current_club_user)) -> ClubUserContext:
    """Coach or administrator required"""
    if not user.is_staff():
        raise PermissionDeniedError("auth.staff_required")
    return user

