"""
Club Management Models

Club-level models: roles, settings, club users, teams, incidents, dashboard.
Member, document, treasury, communication and registration models live in
their own subpackages.
"""

import datetime as dt
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, EmailStr, field_validator

from .members.models import MemberSummary


# =============================================
# Enums
# =============================================

class ClubRole(str, Enum):
    """Club user role"""
    super_admin = "super-admin"  # club owner, created with the club
    admin = "Admin"
    coach = "Coach"
    family = "Family"  # tutor / family contact of a player


ADMIN_ROLES = (ClubRole.super_admin, ClubRole.admin)
STAFF_ROLES = (ClubRole.super_admin, ClubRole.admin, ClubRole.coach)


class BillingPlan(str, Enum):
    basic = "basic"
    pro = "pro"


class MailProvider(str, Enum):
    smtp = "smtp"
    sendpulse = "sendpulse"


class SenderVerificationStatus(str, Enum):
    unverified = "unverified"
    pending = "pending"
    verified = "verified"


class CustomFieldType(str, Enum):
    text = "text"
    number = "number"
    date = "date"
    select = "select"


class CustomFieldTarget(str, Enum):
    player = "player"
    coach = "coach"
    staff = "staff"


class IncidentStatus(str, Enum):
    open = "Abierta"
    in_progress = "En Progreso"
    resolved = "Resuelta"


DEFAULT_INCIDENT_TYPE = "Comportamiento"
DEFAULT_THEME_COLOR = "#2563eb"


# =============================================
# Settings
# =============================================

class GeneralSettingsUpdate(BaseModel):
    """Club name, theme and default language"""
    club_name: Optional[str] = Field(None, min_length=1, max_length=100)
    theme_color: Optional[str] = Field(None, pattern=r"^#?[0-9a-fA-F]{6}$")
    default_locale: Optional[str] = Field(None, pattern=r"^(es|ca|en)$")


class MailSettingsUpdate(BaseModel):
    """Outbound mail credentials"""
    mail_provider: Optional[MailProvider] = None
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = Field(None, ge=1, le=65535)
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from_email: Optional[EmailStr] = None
    sendpulse_api_user_id: Optional[str] = None
    sendpulse_api_secret: Optional[str] = None
    from_email: Optional[EmailStr] = None


class CustomFieldCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=60)
    type: CustomFieldType = CustomFieldType.text
    options: List[str] = []
    applies_to: List[CustomFieldTarget] = [CustomFieldTarget.player]

    @field_validator("options")
    @classmethod
    def strip_options(cls, v: List[str]) -> List[str]:
        return [o.strip() for o in v if o and o.strip()]


class CustomField(CustomFieldCreate):
    id: str


class EssentialDocsUpdate(BaseModel):
    essential_docs: List[str]

    @field_validator("essential_docs")
    @classmethod
    def dedupe(cls, v: List[str]) -> List[str]:
        seen = []
        for name in v:
            name = name.strip()
            if name and name not in seen:
                seen.append(name)
        return seen


class ClubSettingsResponse(BaseModel):
    club_id: str
    club_name: str
    sport: Optional[str] = None
    logo_url: Optional[str] = None
    billing_plan: BillingPlan = BillingPlan.basic
    theme_color: str = DEFAULT_THEME_COLOR
    theme_color_foreground: str = "#ffffff"
    default_locale: str = "es"
    mail_provider: Optional[MailProvider] = None
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_user: Optional[str] = None
    smtp_from_email: Optional[str] = None
    smtp_configured: bool = False
    sendpulse_api_user_id: Optional[str] = None
    sendpulse_configured: bool = False
    from_email: Optional[str] = None
    sender_verification_status: SenderVerificationStatus = SenderVerificationStatus.unverified
    custom_fields: List[CustomField] = []
    essential_docs: List[str] = []


# =============================================
# Club users
# =============================================

class ClubUserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role: ClubRole = ClubRole.family
    player_id: Optional[str] = None


class ClubUserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[ClubRole] = None


class ClubUserResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    role: ClubRole
    player_id: Optional[str] = None


class ClubUserCreated(ClubUserResponse):
    """Returned once, right after the account is created"""
    temporary_password: str


# =============================================
# Teams
# =============================================

class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    sport: str = Field(..., min_length=1, max_length=50)
    category: str = Field(..., min_length=1, max_length=50)
    min_age: Optional[int] = Field(None, ge=0, le=120)
    max_age: Optional[int] = Field(None, ge=0, le=120)
    default_monthly_fee: Optional[float] = Field(None, ge=0)


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    sport: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    min_age: Optional[int] = Field(None, ge=0, le=120)
    max_age: Optional[int] = Field(None, ge=0, le=120)
    default_monthly_fee: Optional[float] = Field(None, ge=0)


class TeamResponse(BaseModel):
    id: str
    name: str
    sport: str
    category: str
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    default_monthly_fee: Optional[float] = None
    player_count: int = 0
    coach_count: int = 0


class TeamDetail(TeamResponse):
    players: List[MemberSummary] = []
    coaches: List[MemberSummary] = []


# =============================================
# Incidents & protocols
# =============================================

class IncidentCreate(BaseModel):
    date: dt.date
    type: str = Field(DEFAULT_INCIDENT_TYPE, min_length=1, max_length=60)
    status: IncidentStatus = IncidentStatus.open
    involved: List[str] = []  # names of the members involved
    description: Optional[str] = None


class IncidentUpdate(BaseModel):
    date: Optional[dt.date] = None
    type: Optional[str] = Field(None, min_length=1, max_length=60)
    status: Optional[IncidentStatus] = None
    involved: Optional[List[str]] = None
    description: Optional[str] = None


class IncidentResponse(BaseModel):
    id: str
    date: dt.date
    type: str
    status: IncidentStatus
    involved: List[str] = []
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class ProtocolResponse(BaseModel):
    id: str
    name: str
    url: str
    path: str
    created_at: Optional[datetime] = None


# =============================================
# Dashboard
# =============================================

class DashboardAlert(BaseModel):
    alert_type: str  # missing_data, overdue_fees, mail_not_configured
    message: str
    count: int = 0


class ClubDashboard(BaseModel):
    club_id: str
    club_name: str
    player_count: int = 0
    coach_count: int = 0
    staff_count: int = 0
    socio_count: int = 0
    team_count: int = 0
    open_incidents: int = 0
    missing_data_count: int = 0
    pending_file_requests: int = 0
    active_registration_forms: int = 0
    pending_email_batches: int = 0
    alerts: List[DashboardAlert] = []
    extra: Dict[str, Any] = {}
