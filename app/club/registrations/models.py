"""
Registration Form Models
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, model_validator


class FormFieldType(str, Enum):
    text = "text"
    email = "email"
    tel = "tel"
    number = "number"
    textarea = "textarea"
    date = "date"


class FormStatus(str, Enum):
    active = "active"
    closed = "closed"


class FormField(BaseModel):
    id: str = Field(..., min_length=1, max_length=60)
    label: str = Field(..., min_length=1, max_length=120)
    type: FormFieldType = FormFieldType.text
    required: bool = False


class RegistrationFormFields(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=150)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    payment_iban: Optional[str] = None
    max_submissions: Optional[int] = Field(None, ge=1)
    registration_start_date: Optional[date] = None
    registration_deadline: Optional[date] = None
    event_start_date: Optional[date] = None
    event_end_date: Optional[date] = None
    fields: Optional[List[FormField]] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.registration_start_date and self.registration_deadline:
            if self.registration_deadline < self.registration_start_date:
                raise ValueError("registration_deadline must not be before registration_start_date")
        if self.event_start_date and self.event_end_date:
            if self.event_end_date < self.event_start_date:
                raise ValueError("event_end_date must not be before event_start_date")
        if self.fields is not None:
            ids = [f.id for f in self.fields]
            if len(ids) != len(set(ids)):
                raise ValueError("field ids must be unique")
        return self


class RegistrationFormCreate(RegistrationFormFields):
    title: str = Field(..., min_length=3, max_length=150)
    price: float = Field(0, ge=0)
    fields: List[FormField] = Field(..., min_length=1)


class RegistrationFormUpdate(RegistrationFormFields):
    pass


class RegistrationFormResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    price: float = 0
    payment_iban: Optional[str] = None
    max_submissions: Optional[int] = None
    registration_start_date: Optional[date] = None
    registration_deadline: Optional[date] = None
    event_start_date: Optional[date] = None
    event_end_date: Optional[date] = None
    fields: List[FormField] = []
    status: FormStatus
    submission_count: int = 0
    created_at: Optional[datetime] = None


class PublicRegistrationForm(BaseModel):
    """What an unauthenticated visitor sees"""
    id: str
    club_name: str
    club_logo_url: Optional[str] = None
    title: str
    description: Optional[str] = None
    price: float = 0
    payment_iban: Optional[str] = None
    event_start_date: Optional[date] = None
    event_end_date: Optional[date] = None
    registration_deadline: Optional[date] = None
    fields: List[FormField] = []


class SubmissionResponse(BaseModel):
    id: str
    submitted_at: Optional[datetime] = None
    data: Dict[str, Any] = {}
