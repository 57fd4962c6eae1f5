"""
Registration Form Service

Forms open and close by date; anyone with the link can submit while the form
is active and below its submission limit.
"""

from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any, Tuple, Type

from loguru import logger
from pydantic import BaseModel, EmailStr, Field, ValidationError, create_model

from database.supabase_client import ClubTable, get_supabase_client
from ..errors import InvalidRequestError, NotFoundError
from ..settings import settings_service
from .models import (
    FormField,
    FormFieldType,
    FormStatus,
    PublicRegistrationForm,
    RegistrationFormCreate,
    RegistrationFormResponse,
    RegistrationFormUpdate,
    SubmissionResponse,
)


def _as_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def compute_status(form: Dict[str, Any], today: Optional[date] = None) -> FormStatus:
    """
    active from the start of the start date until the end of the deadline;
    missing dates leave that side open
    """
    today = today or date.today()
    start = _as_date(form.get("registration_start_date"))
    deadline = _as_date(form.get("registration_deadline"))
    if start and today < start:
        return FormStatus.closed
    if deadline and today > deadline:
        return FormStatus.closed
    return FormStatus.active


_FIELD_TYPES = {
    FormFieldType.email: EmailStr,
    FormFieldType.number: int,
    FormFieldType.date: date,
}


def build_submission_model(fields: List[FormField]) -> Type[BaseModel]:
    """
    Pydantic model for one form: emails validated, numbers as int, required
    text fields must not be empty
    """
    definitions: Dict[str, Tuple[Any, Any]] = {}
    for index, field in enumerate(fields):
        field_type = _FIELD_TYPES.get(field.type, str)
        attr = f"field_{index}"
        if field.required:
            constraints = {"min_length": 1} if field_type is str else {}
            definitions[attr] = (field_type, Field(..., alias=field.id, **constraints))
        else:
            definitions[attr] = (Optional[field_type], Field(None, alias=field.id))
    return create_model("RegistrationSubmission", **definitions)


class RegistrationService:
    """Registration form service"""

    def forms(self, club_id: str) -> ClubTable:
        return ClubTable("registration_forms", club_id)

    def submissions(self, club_id: str) -> ClubTable:
        return ClubTable("registration_submissions", club_id)

    def to_response(self, row: Dict[str, Any]) -> RegistrationFormResponse:
        return RegistrationFormResponse(**{
            **row,
            "price": row.get("price") or 0,
            "fields": row.get("fields") or [],
            "status": row.get("status") or compute_status(row),
            "submission_count": row.get("submission_count") or 0,
        })

    # =============================================
    # Admin CRUD
    # =============================================

    def create_form(self, club_id: str, request: RegistrationFormCreate) -> RegistrationFormResponse:
        data = request.model_dump(mode="json")
        data["status"] = compute_status(data).value
        data["submission_count"] = 0
        row = self.forms(club_id).insert(data)
        logger.info(f"Registration form '{row.get('title')}' created for club {club_id}")
        return self.to_response(row)

    def list_forms(self, club_id: str) -> List[RegistrationFormResponse]:
        rows = self.forms(club_id).list(order_by="created_at", desc=True)
        return [self.to_response(r) for r in rows]

    def get_form(self, club_id: str, form_id: str) -> Dict[str, Any]:
        row = self.forms(club_id).get(form_id)
        if not row:
            raise NotFoundError("errors.not_found", entity="Form")
        return row

    def update_form(self, club_id: str, form_id: str, request: RegistrationFormUpdate) -> RegistrationFormResponse:
        current = self.get_form(club_id, form_id)
        data = request.model_dump(mode="json", exclude_unset=True)
        if "fields" in data and not data["fields"]:
            raise InvalidRequestError("errors.required_fields", fields="fields")

        merged = {**current, **data}
        data["status"] = compute_status(merged).value
        row = self.forms(club_id).update(form_id, data)
        return self.to_response(row or {**merged, **data})

    def delete_form(self, club_id: str, form_id: str) -> None:
        self.get_form(club_id, form_id)
        self.submissions(club_id).delete_where(form_id=form_id)
        self.forms(club_id).delete(form_id)

    def list_submissions(self, club_id: str, form_id: str) -> List[SubmissionResponse]:
        self.get_form(club_id, form_id)
        rows = self.submissions(club_id).list(form_id=form_id, order_by="submitted_at", desc=True)
        return [SubmissionResponse(**r) for r in rows]

    # =============================================
    # Public
    # =============================================

    def _public_row(self, form_id: str) -> Dict[str, Any]:
        result = get_supabase_client().table("registration_forms").select("*").eq(
            "id", form_id
        ).limit(1).execute()
        if not result.data:
            raise NotFoundError("errors.not_found", entity="Form")
        return result.data[0]

    def _check_open(self, row: Dict[str, Any]) -> None:
        if compute_status(row) != FormStatus.active:
            raise InvalidRequestError("forms.closed")
        max_submissions = row.get("max_submissions")
        if max_submissions and (row.get("submission_count") or 0) >= max_submissions:
            raise InvalidRequestError("forms.full")

    def get_public_form(self, form_id: str) -> PublicRegistrationForm:
        row = self._public_row(form_id)
        self._check_open(row)
        club = settings_service.get_club(row["club_id"])
        return PublicRegistrationForm(
            id=row["id"],
            club_name=club.get("name") or "",
            club_logo_url=club.get("logo_url"),
            title=row["title"],
            description=row.get("description"),
            price=row.get("price") or 0,
            payment_iban=row.get("payment_iban"),
            event_start_date=row.get("event_start_date"),
            event_end_date=row.get("event_end_date"),
            registration_deadline=row.get("registration_deadline"),
            fields=row.get("fields") or [],
        )

    def submit(self, form_id: str, data: Dict[str, Any]) -> SubmissionResponse:
        """Validate against the form's fields, store, and bump the counter"""
        row = self._public_row(form_id)
        self._check_open(row)

        fields = [FormField(**f) for f in (row.get("fields") or [])]
        cleaned = {
            k: (v.strip() if isinstance(v, str) else v)
            for k, v in data.items()
        }
        for field in fields:
            if not field.required and cleaned.get(field.id) == "":
                cleaned[field.id] = None

        model = build_submission_model(fields)
        try:
            validated = model.model_validate(cleaned)
        except ValidationError as e:
            messages = "; ".join(
                f"{err['loc'][0] if err.get('loc') else ''}: {err['msg']}" for err in e.errors()
            )
            raise InvalidRequestError("forms.invalid_submission", errors=messages)

        club_id = row["club_id"]
        submission = self.submissions(club_id).insert({
            "form_id": form_id,
            "submitted_at": datetime.now(timezone.utc).isoformat(),
            "data": validated.model_dump(mode="json", by_alias=True),
        })
        self.forms(club_id).update(form_id, {
            "submission_count": (row.get("submission_count") or 0) + 1
        })
        return SubmissionResponse(**submission)

    # =============================================
    # Scheduled refresh
    # =============================================

    def refresh_statuses(self, today: Optional[date] = None) -> int:
        """Recompute every form's status; returns how many changed"""
        result = get_supabase_client().table("registration_forms").select(
            "id, club_id, status, registration_start_date, registration_deadline"
        ).execute()

        changed = 0
        for row in result.data or []:
            status = compute_status(row, today).value
            if status != row.get("status"):
                self.forms(row["club_id"]).update(row["id"], {"status": status})
                changed += 1
        if changed:
            logger.info(f"Registration forms refreshed: {changed} status changes")
        return changed


registration_service = RegistrationService()
