"""
Club domain errors

Each error carries a message key from ``app.i18n`` so the API can answer in
the caller's language.
"""
from typing import Optional


class ClubError(Exception):
    """Base error for club operations"""

    status_code = 400
    default_key = "errors.unexpected"

    def __init__(self, key: Optional[str] = None, **params):
        self.key = key or self.default_key
        self.params = params
        super().__init__(self.key)

    def __str__(self) -> str:
        if self.params:
            return f"{self.key} {self.params}"
        return self.key


class InvalidRequestError(ClubError):
    status_code = 400
    default_key = "errors.required_fields"


class AuthenticationError(ClubError):
    status_code = 401
    default_key = "auth.required"


class PermissionDeniedError(ClubError):
    status_code = 403
    default_key = "auth.admin_required"


class NotFoundError(ClubError):
    status_code = 404
    default_key = "errors.not_found"


class InvalidTokenError(ClubError):
    """Token missing, already used or expired"""
    status_code = 410
    default_key = "token.invalid"


class MailNotConfiguredError(ClubError):
    status_code = 400
    default_key = "mail.not_configured"


class MailDeliveryError(ClubError):
    status_code = 502
    default_key = "mail.delivery_failed"


class StorageError(ClubError):
    status_code = 502
    default_key = "errors.storage"


def auth_error_key(error: Exception) -> Optional[str]:
    """Map a Supabase Auth error to a message key"""
    message = str(error).lower()
    if "already" in message and ("registered" in message or "exists" in message):
        return "auth.email_in_use"
    if "password" in message:
        return "auth.weak_password"
    if "email" in message and ("invalid" in message or "valid" in message):
        return "auth.invalid_email"
    return None
