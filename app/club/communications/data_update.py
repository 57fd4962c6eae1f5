"""
Data update tokens (public)

A member opens the link from a data update email, sees the fields the club
chose to show and saves the editable ones. The token works once and for a
limited time.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, List

from loguru import logger
from pydantic import EmailStr, TypeAdapter, ValidationError

from database.supabase_client import ClubTable, get_supabase_client
from ..errors import InvalidRequestError, InvalidTokenError, NotFoundError
from ..members.models import MEMBER_TABLES, MemberKind
from ..settings import settings_service
from .batches import parse_timestamp, utcnow
from .models import (
    DATE_FIELDS,
    DECIMAL_FIELDS,
    DataUpdateForm,
    EMAIL_FIELDS,
    FieldPermission,
    INTEGER_FIELDS,
    TokenStatus,
    UPDATABLE_FIELDS,
    UpdateField,
)

CUSTOM_PREFIX = "custom_"

_email_adapter = TypeAdapter(EmailStr)


def normalize_date(value: Any) -> Optional[str]:
    """Date-like value to YYYY-MM-DD"""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.strptime(text[:10], fmt).date().isoformat()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        raise ValueError(f"invalid date: {value}")


def coerce_value(field: str, value: Any) -> Any:
    """Normalize one submitted value; raises ValueError when it is invalid"""
    if isinstance(value, str):
        value = value.strip()
    if value in (None, ""):
        return None
    if field in DATE_FIELDS:
        return normalize_date(value)
    if field in EMAIL_FIELDS:
        try:
            return str(_email_adapter.validate_python(value))
        except ValidationError:
            raise ValueError(f"invalid email: {value}")
    if field in INTEGER_FIELDS:
        try:
            return int(str(value))
        except ValueError:
            raise ValueError(f"invalid number: {value}")
    if field in DECIMAL_FIELDS:
        try:
            return float(Decimal(str(value).replace(",", ".")))
        except InvalidOperation:
            raise ValueError(f"invalid amount: {value}")
    return value


def allowed_field(kind: MemberKind, field: str) -> bool:
    return field.startswith(CUSTOM_PREFIX) or field in UPDATABLE_FIELDS.get(MemberKind(kind), [])


class DataUpdateService:
    """Public data update flow"""

    def _tokens(self):
        return get_supabase_client().table("data_update_tokens")

    def get_token(self, token: str) -> Dict[str, Any]:
        """Pending, unexpired token row; expired tokens are marked as such"""
        result = self._tokens().select("*").eq("id", token).limit(1).execute()
        if not result.data:
            raise InvalidTokenError("token.invalid")
        row = result.data[0]
        if row.get("status") != TokenStatus.pending.value:
            raise InvalidTokenError("token.invalid")

        expires_at = parse_timestamp(row.get("expires_at"))
        if expires_at and expires_at < utcnow():
            self._tokens().update({"status": TokenStatus.expired.value}).eq(
                "id", token
            ).eq("status", TokenStatus.pending.value).execute()
            raise InvalidTokenError("token.expired")
        return row

    def _member(self, row: Dict[str, Any]) -> Dict[str, Any]:
        kind = MemberKind(row["member_type"])
        member = ClubTable(MEMBER_TABLES[kind], row["club_id"]).get(row["member_id"])
        if not member:
            raise NotFoundError("errors.not_found", entity="Member")
        return member

    def get_form(self, token: str) -> DataUpdateForm:
        row = self.get_token(token)
        kind = MemberKind(row["member_type"])
        member = self._member(row)
        club = settings_service.get_club(row["club_id"])
        custom_values = member.get("custom_fields") or {}

        fields: List[UpdateField] = []
        for name, config in (row.get("field_config") or {}).items():
            permission = FieldPermission(config.get("permission", FieldPermission.editable.value))
            if permission == FieldPermission.hidden or not allowed_field(kind, name):
                continue
            value = custom_values.get(name) if name.startswith(CUSTOM_PREFIX) else member.get(name)
            fields.append(UpdateField(
                name=name,
                label=config.get("label") or name,
                permission=permission,
                value=value,
            ))

        return DataUpdateForm(
            token=token,
            club_name=club.get("name") or "",
            club_logo_url=club.get("logo_url"),
            member_type=kind,
            member_name=f"{member.get('name', '')} {member.get('last_name') or ''}".strip(),
            fields=fields,
        )

    def submit(self, token: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Save the editable fields and close the token.

        Fields that are read-only, hidden or unknown are ignored. The token is
        claimed first with a conditional update so it can only be used once.
        """
        row = self.get_token(token)
        kind = MemberKind(row["member_type"])
        member = self._member(row)
        config = row.get("field_config") or {}

        editable = {
            name for name, c in config.items()
            if c.get("permission", FieldPermission.editable.value) == FieldPermission.editable.value
            and allowed_field(kind, name)
        }

        update: Dict[str, Any] = {}
        custom_fields = dict(member.get("custom_fields") or {})
        errors = []
        for name, value in data.items():
            if name not in editable:
                continue
            try:
                value = coerce_value(name, value)
            except ValueError as e:
                errors.append(f"{name}: {e}")
                continue
            if name.startswith(CUSTOM_PREFIX):
                custom_fields[name] = value
            else:
                update[name] = value
        if errors:
            raise InvalidRequestError("forms.invalid_submission", errors="; ".join(errors))

        if any(n.startswith(CUSTOM_PREFIX) for n in editable):
            update["custom_fields"] = custom_fields
        update["update_request_active"] = False

        claimed = self._tokens().update({
            "status": TokenStatus.completed.value,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", token).eq("status", TokenStatus.pending.value).execute()
        if not claimed.data:
            raise InvalidTokenError("token.invalid")

        try:
            updated = ClubTable(MEMBER_TABLES[kind], row["club_id"]).update(row["member_id"], update)
        except Exception:
            self._tokens().update({"status": TokenStatus.pending.value, "completed_at": None}).eq(
                "id", token
            ).execute()
            raise

        logger.info(f"Member {row['member_id']} updated {len(update) - 1} fields via token")
        return updated or {**member, **update}


data_update_service = DataUpdateService()
