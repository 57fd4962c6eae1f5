"""
Club user administration

Club users are the people who can sign in to a club: the owner
(super-admin), admins, coaches and family contacts.
"""

import secrets
from typing import List

from loguru import logger

from database.supabase_client import ClubTable, get_supabase_client
from .errors import InvalidRequestError, NotFoundError, PermissionDeniedError, auth_error_key
from .models import ClubRole, ClubUserCreate, ClubUserCreated, ClubUserUpdate, ClubUserResponse

# length in bytes of the generated first password
TEMPORARY_PASSWORD_BYTES = 9


class ClubUserService:
    """Club user service"""

    def table(self, club_id: str) -> ClubTable:
        return ClubTable("club_users", club_id)

    def list_users(self, club_id: str) -> List[ClubUserResponse]:
        return [ClubUserResponse(**r) for r in self.table(club_id).list(order_by="name")]

    def create_user(self, club_id: str, request: ClubUserCreate) -> ClubUserCreated:
        """
        Create a sign-in account for a club contact

        The auth account gets a generated password that is returned once so
        the admin can hand it over. The user -> club mapping lets login find
        the club.
        """
        supabase = get_supabase_client()
        password = secrets.token_urlsafe(TEMPORARY_PASSWORD_BYTES)

        try:
            auth_response = supabase.auth.sign_up({"email": request.email, "password": password})
        except Exception as e:
            logger.error(f"Account creation failed for {request.email}: {e}")
            key = auth_error_key(e)
            if key:
                raise InvalidRequestError(key)
            raise InvalidRequestError("auth.user_create_failed", error=str(e))

        auth_user = getattr(auth_response, "user", None)
        if not auth_user:
            raise InvalidRequestError("auth.user_create_failed", error="no user returned")

        ClubTable("app_users", club_id).insert({"id": auth_user.id, "email": request.email})
        row = self.table(club_id).insert({
            **request.model_dump(mode="json", exclude_none=True),
            "auth_user_id": auth_user.id,
        })
        logger.info(f"Added club user {row['id']} ({row['role']}) to club {club_id}")
        return ClubUserCreated(**row, temporary_password=password)
    def update_user(
        self,
        club_id: str,
        user_id: str,
        request: ClubUserUpdate,
        acting_user_id: str
    ) -> ClubUserResponse:
        table = self.table(club_id)
        current = table.get(user_id)
        if not current:
            raise NotFoundError("errors.not_found", entity="User")

        data = request.model_dump(mode="json", exclude_unset=True)
        if "role" in data and user_id == acting_user_id and data["role"] != current.get("role"):
            raise PermissionDeniedError("auth.cannot_change_self")
        # the club owner keeps their role
        if "role" in data and current.get("role") == ClubRole.super_admin.value:
            data.pop("role")

        updated = table.update(user_id, data) if data else current
        return ClubUserResponse(**(updated or {**current, **data}))

    def delete_user(self, club_id: str, user_id: str, acting_user_id: str) -> None:
        if user_id == acting_user_id:
            raise PermissionDeniedError("auth.cannot_change_self")

        current = self.table(club_id).get(user_id)
        if not current:
            raise NotFoundError("errors.not_found", entity="User")
        if current.get("role") == ClubRole.super_admin.value:
            raise PermissionDeniedError("auth.admin_required")

        self.table(club_id).delete(user_id)
        if current.get("auth_user_id"):
            ClubTable("app_users", club_id).delete(current["auth_user_id"])
        logger.info(f"Removed club user {user_id} from club {club_id}")


club_user_service = ClubUserService()
