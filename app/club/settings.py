"""
Club Settings Service

General, mail, logo, custom field and essential document settings. One
``club_settings`` row per club; the club name lives on ``clubs``.
"""

import secrets
import uuid
from typing import Optional, Dict, Any, List

from fastapi import UploadFile
from loguru import logger

from app.config import dispatch_config, mail_config
from app.i18n import translate
from database.supabase_client import ClubTable, get_supabase_client
from .errors import InvalidRequestError, InvalidTokenError, NotFoundError
from .models import (
    BillingPlan,
    ClubSettingsResponse,
    CustomField,
    CustomFieldCreate,
    DEFAULT_THEME_COLOR,
    GeneralSettingsUpdate,
    MailSettingsUpdate,
    SenderVerificationStatus,
)
from .storage import club_storage, build_path, read_upload

SENDER_TOKEN_BYTES = 24


def hex_luminance(hex_color: Optional[str]) -> float:
    """Relative luminance 0..1 of a #rrggbb colour; 0 for invalid input"""
    value = (hex_color or "").lstrip("#")
    if len(value) != 6:
        return 0.0
    try:
        r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return 0.0
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def foreground_for(hex_color: Optional[str]) -> str:
    """Black text on light backgrounds, white on dark ones"""
    return "#000000" if hex_luminance(hex_color) > 0.5 else "#ffffff"


def normalize_hex(hex_color: str) -> str:
    return "#" + hex_color.lstrip("#").lower()


def default_settings(theme_color: str = DEFAULT_THEME_COLOR) -> Dict[str, Any]:
    """Settings row written when a club is created"""
    theme_color = normalize_hex(theme_color)
    return {
        "billing_plan": BillingPlan.basic.value,
        "theme_color": theme_color,
        "theme_color_foreground": foreground_for(theme_color),
        "default_locale": "es",
        "custom_fields": [],
        "essential_docs": [],
        "daily_email_count": 0,
        "daily_email_count_reset_at": None,
    }


class SettingsService:
    """Club settings service"""

    def _settings_table(self, club_id: str) -> ClubTable:
        return ClubTable("club_settings", club_id)

    def get_club(self, club_id: str) -> Dict[str, Any]:
        result = get_supabase_client().table("clubs").select("*").eq("id", club_id).limit(1).execute()
        if not result.data:
            raise NotFoundError("errors.not_found", entity="Club")
        return result.data[0]

    def get_settings(self, club_id: str) -> Dict[str, Any]:
        """Raw settings row, created with defaults when missing"""
        table = self._settings_table(club_id)
        row = table.find_one()
        if row:
            return row
        logger.info(f"Creating default settings for club {club_id}")
        return table.insert(default_settings())

    def update_settings(self, club_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        row = self.get_settings(club_id)
        updated = self._settings_table(club_id).update(row["id"], data)
        return updated or {**row, **data}

    def to_response(self, club: Dict[str, Any], settings: Dict[str, Any]) -> ClubSettingsResponse:
        """Settings as returned to the client; secrets are reduced to flags"""
        return ClubSettingsResponse(
            club_id=club["id"],
            club_name=club.get("name") or mail_config.default_club_name,
            sport=club.get("sport"),
            logo_url=club.get("logo_url"),
            billing_plan=settings.get("billing_plan") or BillingPlan.basic,
            theme_color=settings.get("theme_color") or DEFAULT_THEME_COLOR,
            theme_color_foreground=settings.get("theme_color_foreground") or foreground_for(
                settings.get("theme_color") or DEFAULT_THEME_COLOR
            ),
            default_locale=settings.get("default_locale") or "es",
            mail_provider=settings.get("mail_provider"),
            smtp_host=settings.get("smtp_host"),
            smtp_port=settings.get("smtp_port"),
            smtp_user=settings.get("smtp_user"),
            smtp_from_email=settings.get("smtp_from_email"),
            smtp_configured=bool(
                settings.get("smtp_host") and settings.get("smtp_port")
                and settings.get("smtp_user") and settings.get("smtp_password")
                and settings.get("smtp_from_email")
            ),
            sendpulse_api_user_id=settings.get("sendpulse_api_user_id"),
            sendpulse_configured=bool(
                settings.get("sendpulse_api_user_id") and settings.get("sendpulse_api_secret")
            ),
            from_email=settings.get("from_email"),
            sender_verification_status=settings.get("sender_verification_status") or "unverified",
            custom_fields=settings.get("custom_fields") or [],
            essential_docs=settings.get("essential_docs") or [],
        )

    def get_response(self, club_id: str) -> ClubSettingsResponse:
        return self.to_response(self.get_club(club_id), self.get_settings(club_id))

    def update_general(self, club_id: str, update: GeneralSettingsUpdate) -> ClubSettingsResponse:
        data = update.model_dump(exclude_unset=True, exclude_none=True)

        club_name = data.pop("club_name", None)
        if club_name:
            get_supabase_client().table("clubs").update({"name": club_name}).eq("id", club_id).execute()

        if "theme_color" in data:
            data["theme_color"] = normalize_hex(data["theme_color"])
            data["theme_color_foreground"] = foreground_for(data["theme_color"])

        if data:
            self.update_settings(club_id, data)
        return self.get_response(club_id)

    def update_mail(self, club_id: str, update: MailSettingsUpdate) -> ClubSettingsResponse:
        """Store mail credentials; blank secrets keep the stored value"""
        data = update.model_dump(mode="json", exclude_unset=True)
        for secret in ("smtp_password", "sendpulse_api_secret"):
            if not data.get(secret):
                data.pop(secret, None)

        current = self.get_settings(club_id)
        if "from_email" in data and data["from_email"] != current.get("from_email"):
            # a new sender address must be verified again
            data["sender_verification_status"] = SenderVerificationStatus.unverified.value
            data["sender_verification_token"] = None

        self.update_settings(club_id, data)
        return self.get_response(club_id)

    async def request_sender_verification(self, club_id: str, locale: str = "es") -> ClubSettingsResponse:
        """
        Email a confirmation link to the club's sender address

        The address is only used as sender after the link is opened.
        """
        from .communications.mailer import OutgoingMail, club_transport

        settings = self.get_settings(club_id)
        from_email = settings.get("from_email")
        if not from_email:
            raise InvalidRequestError("settings.sender_missing")

        club = self.get_club(club_id)
        token = secrets.token_urlsafe(SENDER_TOKEN_BYTES)
        link = f"{dispatch_config.public_base_url.rstrip('/')}/verify-sender?token={token}"
        club_name = club.get("name") or mail_config.default_club_name

        transport = club_transport(club_id)
        await transport.send(OutgoingMail(
            to=from_email,
            subject=translate("settings.sender_verification_subject", locale, club_name=club_name),
            html=translate("settings.sender_verification_body", locale, club_name=club_name,
                           email=from_email, link=link),
        ))

        self.update_settings(club_id, {
            "sender_verification_status": SenderVerificationStatus.pending.value,
            "sender_verification_token": token,
        })
        logger.info(f"Sender verification sent to {from_email} for club {club_id}")
        return self.get_response(club_id)

    def confirm_sender(self, token: str) -> None:
        """Mark the sender address whose link was opened as verified"""
        result = get_supabase_client().table("club_settings").select("*").eq(
            "sender_verification_token", token
        ).limit(1).execute()
        row = result.data[0] if result.data else None
        if not row or row.get("sender_verification_status") != SenderVerificationStatus.pending.value:
            raise InvalidTokenError("token.invalid")

        self._settings_table(row["club_id"]).update(row["id"], {
            "sender_verification_status": SenderVerificationStatus.verified.value,
            "sender_verification_token": None,
        })
        logger.info(f"Sender {row.get('from_email')} verified for club {row['club_id']}")

    async def upload_logo(self, club_id: str, file: UploadFile) -> ClubSettingsResponse:
        content = await read_upload(file, image_only=True)
        club = self.get_club(club_id)

        path = build_path("club-logos", club_id, file.filename)
        url = club_storage.upload(path, content, file.content_type)

        get_supabase_client().table("clubs").update(
            {"logo_url": url, "logo_path": path}
        ).eq("id", club_id).execute()

        if club.get("logo_path"):
            club_storage.remove([club["logo_path"]])

        return self.get_response(club_id)

    def add_custom_field(self, club_id: str, field: CustomFieldCreate) -> List[CustomField]:
        settings = self.get_settings(club_id)
        fields = list(settings.get("custom_fields") or [])
        new_field = CustomField(id=f"custom_{uuid.uuid4().hex[:8]}", **field.model_dump())
        fields.append(new_field.model_dump(mode="json"))
        self.update_settings(club_id, {"custom_fields": fields})
        return [CustomField(**f) for f in fields]

    def remove_custom_field(self, club_id: str, field_id: str) -> List[CustomField]:
        settings = self.get_settings(club_id)
        fields = [f for f in (settings.get("custom_fields") or []) if f.get("id") != field_id]
        if len(fields) == len(settings.get("custom_fields") or []):
            raise NotFoundError("errors.not_found", entity="Custom field")
        self.update_settings(club_id, {"custom_fields": fields})
        return [CustomField(**f) for f in fields]

    def set_essential_docs(self, club_id: str, names: List[str]) -> List[str]:
        self.update_settings(club_id, {"essential_docs": names})
        return names


settings_service = SettingsService()
