"""
Member Models

Players, coaches, staff and socios. Create models require the identifying
fields; update models accept any subset.
"""

from datetime import date
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, EmailStr


class MemberKind(str, Enum):
    player = "player"
    coach = "coach"
    staff = "staff"
    socio = "socio"


MEMBER_TABLES = {
    MemberKind.player: "players",
    MemberKind.coach: "coaches",
    MemberKind.staff: "staff",
    MemberKind.socio: "socios",
}


class PaymentStatus(str, Enum):
    paid = "paid"
    pending = "pending"
    overdue = "overdue"


class SocioPaymentType(str, Enum):
    monthly = "monthly"
    annual = "annual"


class Sex(str, Enum):
    male = "masculino"
    female = "femenino"
    other = "otro"


DEFAULT_AVATAR = "https://placehold.co/100x100.png"


# =============================================
# Players
# =============================================

class PlayerFields(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    last_name: Optional[str] = Field(None, min_length=1, max_length=120)
    sex: Optional[Sex] = None
    birth_date: Optional[date] = None
    dni: Optional[str] = None
    nationality: Optional[str] = None
    health_card_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    team_id: Optional[str] = None
    jersey_number: Optional[int] = Field(None, ge=0, le=999)
    monthly_fee: Optional[float] = Field(None, ge=0)
    kit_size: Optional[str] = None
    is_own_tutor: Optional[bool] = None
    tutor_name: Optional[str] = None
    tutor_last_name: Optional[str] = None
    tutor_dni: Optional[str] = None
    tutor_email: Optional[EmailStr] = None
    tutor_phone: Optional[str] = None
    iban: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    has_interruption: Optional[bool] = None
    medical_check_completed: Optional[bool] = None
    avatar: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    custom_fields: Optional[Dict[str, Any]] = None


class PlayerCreate(PlayerFields):
    name: str = Field(..., min_length=1, max_length=80)
    last_name: str = Field(..., min_length=1, max_length=120)


class PlayerUpdate(PlayerFields):
    pass


# =============================================
# Coaches
# =============================================

class CoachFields(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    last_name: Optional[str] = Field(None, min_length=1, max_length=120)
    sex: Optional[Sex] = None
    role: Optional[str] = None  # e.g. head coach, assistant
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    team_id: Optional[str] = None
    birth_date: Optional[date] = None
    dni: Optional[str] = None
    nationality: Optional[str] = None
    health_card_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    iban: Optional[str] = None
    is_own_tutor: Optional[bool] = None
    tutor_name: Optional[str] = None
    tutor_last_name: Optional[str] = None
    tutor_dni: Optional[str] = None
    monthly_payment: Optional[float] = Field(None, ge=0)
    kit_size: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    has_interruption: Optional[bool] = None
    avatar: Optional[str] = None
    custom_fields: Optional[Dict[str, Any]] = None


class CoachCreate(CoachFields):
    name: str = Field(..., min_length=1, max_length=80)
    last_name: str = Field(..., min_length=1, max_length=120)


class CoachUpdate(CoachFields):
    pass


# =============================================
# Staff
# =============================================

class StaffFields(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    last_name: Optional[str] = Field(None, min_length=1, max_length=120)
    sex: Optional[Sex] = None
    role: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    custom_fields: Optional[Dict[str, Any]] = None


class StaffCreate(StaffFields):
    name: str = Field(..., min_length=1, max_length=80)
    last_name: str = Field(..., min_length=1, max_length=120)


class StaffUpdate(StaffFields):
    pass


# =============================================
# Socios
# =============================================

class SocioFields(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    last_name: Optional[str] = Field(None, min_length=1, max_length=120)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    dni: Optional[str] = None
    payment_type: Optional[SocioPaymentType] = None
    fee: Optional[float] = Field(None, ge=0)
    socio_number: Optional[str] = None


class SocioCreate(SocioFields):
    name: str = Field(..., min_length=1, max_length=80)
    last_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    payment_type: SocioPaymentType = SocioPaymentType.monthly


class SocioUpdate(SocioFields):
    pass


CREATE_MODELS = {
    MemberKind.player: PlayerCreate,
    MemberKind.coach: CoachCreate,
    MemberKind.staff: StaffCreate,
    MemberKind.socio: SocioCreate,
}

UPDATE_MODELS = {
    MemberKind.player: PlayerUpdate,
    MemberKind.coach: CoachUpdate,
    MemberKind.staff: StaffUpdate,
    MemberKind.socio: SocioUpdate,
}


# =============================================
# Shared
# =============================================

class MemberSummary(BaseModel):
    """Compact member entry used in rosters and recipient pickers"""
    id: str
    kind: MemberKind
    name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    avatar: Optional[str] = None
    has_missing_data: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name or ''}".strip()


class AssignTeamRequest(BaseModel):
    player_ids: List[str] = Field(..., min_length=1)
    team_id: Optional[str] = None  # None unassigns


class ImportResult(BaseModel):
    kind: MemberKind
    imported: int
