"""
Treasury Models
"""

from datetime import date as Date, datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field

from ..members.models import PaymentStatus


class SponsorshipFrequency(str, Enum):
    monthly = "monthly"
    annual = "annual"
    one_time = "one-time"


class ExpenseRecurrence(str, Enum):
    none = "none"
    monthly = "monthly"
    annual = "annual"


class FeeRow(BaseModel):
    player_id: str
    name: str
    last_name: Optional[str] = None
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    monthly_fee: Optional[float] = None
    payment_status: PaymentStatus = PaymentStatus.pending
    last_payment_date: Optional[Date] = None


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


# =============================================
# One-time payments
# =============================================

class OneTimePaymentCreate(BaseModel):
    concept: str = Field(..., min_length=1, max_length=150)
    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    target_member_ids: List[str] = []
    issue_date: Date = Field(default_factory=Date.today)


class OneTimePaymentUpdate(BaseModel):
    concept: Optional[str] = Field(None, min_length=1, max_length=150)
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    target_member_ids: Optional[List[str]] = None
    issue_date: Optional[Date] = None


# =============================================
# Sponsorships
# =============================================

class SponsorshipCreate(BaseModel):
    sponsor_name: str = Field(..., min_length=1, max_length=150)
    amount: float = Field(..., gt=0)
    frequency: SponsorshipFrequency = SponsorshipFrequency.annual
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    notes: Optional[str] = None


class SponsorshipUpdate(BaseModel):
    sponsor_name: Optional[str] = Field(None, min_length=1, max_length=150)
    amount: Optional[float] = Field(None, gt=0)
    frequency: Optional[SponsorshipFrequency] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    notes: Optional[str] = None


# =============================================
# Expenses
# =============================================

class ExpenseCreate(BaseModel):
    concept: str = Field(..., min_length=1, max_length=150)
    category: Optional[str] = None
    amount: float = Field(..., gt=0)
    date: Date = Field(default_factory=Date.today)
    recurrence: ExpenseRecurrence = ExpenseRecurrence.none


class ExpenseUpdate(BaseModel):
    concept: Optional[str] = Field(None, min_length=1, max_length=150)
    category: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    date: Optional[Date] = None
    recurrence: Optional[ExpenseRecurrence] = None


class TreasurySummary(BaseModel):
    expected_fee_income: float = 0
    pending_fee_amount: float = 0
    paid_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0
    sponsorship_monthly_income: float = 0
    sponsorship_one_time_total: float = 0
    one_time_payments_total: float = 0
    monthly_expenses: float = 0
    one_off_expenses_total: float = 0
    monthly_balance: float = 0
    generated_at: Optional[datetime] = None
