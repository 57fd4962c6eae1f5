"""
Communication Models

Direct emails, AI templates, email batches and data update tokens.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, EmailStr

from ..members.models import MemberKind


class BatchStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class RecipientStatus(str, Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class TokenStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    expired = "expired"


class FieldPermission(str, Enum):
    editable = "editable"
    readonly = "readonly"
    hidden = "hidden"


COMMON_UPDATE_FIELDS = [
    "avatar", "name", "last_name", "birth_date", "dni", "address",
    "city", "postal_code", "kit_size", "iban",
]
TUTOR_UPDATE_FIELDS = ["tutor_name", "tutor_last_name", "tutor_dni"]

# fields a member may be asked to review, per member type
UPDATABLE_FIELDS = {
    MemberKind.player: COMMON_UPDATE_FIELDS + TUTOR_UPDATE_FIELDS + [
        "tutor_email", "tutor_phone", "jersey_number", "monthly_fee",
    ],
    MemberKind.coach: COMMON_UPDATE_FIELDS + TUTOR_UPDATE_FIELDS + [
        "email", "phone", "monthly_payment",
    ],
    MemberKind.staff: ["avatar", "name", "last_name", "role", "email", "phone"],
}

DATE_FIELDS = {"birth_date", "start_date", "end_date"}
EMAIL_FIELDS = {"email", "tutor_email"}
INTEGER_FIELDS = {"jersey_number"}
DECIMAL_FIELDS = {"monthly_fee", "monthly_payment"}

MEMBER_NAME_PLACEHOLDER = "[Nombre del Miembro]"
UPDATE_LINK_PLACEHOLDER = "[updateLink]"
PAYMENT_LINK_PLACEHOLDER = "[Enlace de Pago]"


# =============================================
# Direct email & templates
# =============================================

class DirectEmailRequest(BaseModel):
    recipients: List[EmailStr] = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1)


class DirectEmailResult(BaseModel):
    sent: int
    failed: List[str] = []


class TemplateRequest(BaseModel):
    communication_goal: str = Field(..., min_length=1)
    target_audience: str = Field(..., min_length=1)
    key_information: str = Field(..., min_length=1)
    tone: Optional[str] = None
    additional_context: Optional[str] = None
    payment_info: Optional[str] = None


class TemplateResponse(BaseModel):
    subject: str
    body: str


# =============================================
# Email batches
# =============================================

class FieldConfig(BaseModel):
    label: Optional[str] = None
    permission: FieldPermission = FieldPermission.editable


class BatchRecipient(BaseModel):
    id: str
    name: str
    email: Optional[EmailStr] = None
    type: MemberKind


class EmailBatchCreate(BaseModel):
    recipients: List[BatchRecipient] = Field(..., min_length=1)
    field_config: Dict[str, FieldConfig] = {}
    subject: Optional[str] = None
    body: Optional[str] = None


class EmailBatchResponse(BaseModel):
    id: str
    status: BatchStatus
    subject: Optional[str] = None
    total: int = 0
    sent: int = 0
    failed: int = 0
    pending: int = 0
    progress: float = 0.0
    emails_sent_count: int = 0
    error: Optional[str] = None
    created_at: Optional[datetime] = None


class ProcessResult(BaseModel):
    batch_id: Optional[str] = None
    status: Optional[BatchStatus] = None
    processed_count: int = 0
    errors: List[str] = []


# =============================================
# Data update (public)
# =============================================

class UpdateField(BaseModel):
    name: str
    label: str
    permission: FieldPermission
    value: Any = None


class DataUpdateForm(BaseModel):
    token: str
    club_name: str
    club_logo_url: Optional[str] = None
    member_type: MemberKind
    member_name: str
    fields: List[UpdateField] = []


class DataUpdateSubmit(BaseModel):
    data: Dict[str, Any]
