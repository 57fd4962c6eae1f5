"""
Treasury Service

Monthly fees are tracked on the player record; one-time payments,
sponsorships and expenses are simple per-club ledgers.
"""

from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any

from pydantic import BaseModel

from database.supabase_client import ClubTable
from ..errors import NotFoundError
from ..members.models import MemberKind, PaymentStatus
from ..members.service import member_service
from .models import (
    ExpenseRecurrence,
    FeeRow,
    SponsorshipFrequency,
    TreasurySummary,
)

LEDGER_TABLES = {
    "payments": "one_time_payments",
    "sponsorships": "sponsorships",
    "expenses": "expenses",
}

LEDGER_ORDER = {
    "payments": "issue_date",
    "sponsorships": "start_date",
    "expenses": "date",
}


def _monthly(amount: float, period: str) -> float:
    """Monthly equivalent of a recurring amount"""
    if period == "monthly":
        return amount
    if period == "annual":
        return amount / 12
    return 0.0


def _is_current(row: Dict[str, Any], today: date) -> bool:
    start = row.get("start_date")
    end = row.get("end_date")
    if start and date.fromisoformat(str(start)[:10]) > today:
        return False
    if end and date.fromisoformat(str(end)[:10]) < today:
        return False
    return True


class TreasuryService:
    """Treasury service"""

    # =============================================
    # Fees
    # =============================================

    def list_fees(self, club_id: str, team_id: Optional[str] = None) -> List[FeeRow]:
        players = member_service.table(club_id, MemberKind.player).list(
            order_by="name", **({"team_id": team_id} if team_id else {})
        )
        return [FeeRow(
            player_id=p["id"],
            name=p.get("name") or "",
            last_name=p.get("last_name"),
            team_id=p.get("team_id"),
            team_name=p.get("team_name"),
            monthly_fee=p.get("monthly_fee"),
            payment_status=p.get("payment_status") or PaymentStatus.pending,
            last_payment_date=p.get("last_payment_date"),
        ) for p in players]

    def set_payment_status(self, club_id: str, player_id: str, status: PaymentStatus) -> FeeRow:
        data: Dict[str, Any] = {"payment_status": PaymentStatus(status).value}
        if status == PaymentStatus.paid:
            data["last_payment_date"] = date.today().isoformat()

        updated = member_service.table(club_id, MemberKind.player).update(player_id, data)
        if not updated:
            raise NotFoundError("errors.not_found", entity="Player")
        return FeeRow(
            player_id=updated["id"],
            name=updated.get("name") or "",
            last_name=updated.get("last_name"),
            team_id=updated.get("team_id"),
            team_name=updated.get("team_name"),
            monthly_fee=updated.get("monthly_fee"),
            payment_status=updated.get("payment_status") or PaymentStatus.pending,
            last_payment_date=updated.get("last_payment_date"),
        )

    # =============================================
    # Ledgers
    # =============================================

    def ledger(self, club_id: str, kind: str) -> ClubTable:
        return ClubTable(LEDGER_TABLES[kind], club_id)

    def list_entries(self, club_id: str, kind: str) -> List[Dict[str, Any]]:
        return self.ledger(club_id, kind).list(order_by=LEDGER_ORDER[kind], desc=True)

    def create_entry(self, club_id: str, kind: str, payload: BaseModel) -> Dict[str, Any]:
        return self.ledger(club_id, kind).insert(payload.model_dump(mode="json"))

    def update_entry(self, club_id: str, kind: str, entry_id: str, payload: BaseModel) -> Dict[str, Any]:
        data = payload.model_dump(mode="json", exclude_unset=True)
        table = self.ledger(club_id, kind)
        current = table.get(entry_id)
        if not current:
            raise NotFoundError("errors.not_found", entity="Entry")
        if not data:
            return current
        return table.update(entry_id, data) or {**current, **data}

    def delete_entry(self, club_id: str, kind: str, entry_id: str) -> None:
        if not self.ledger(club_id, kind).delete(entry_id):
            raise NotFoundError("errors.not_found", entity="Entry")

    # =============================================
    # Summary
    # =============================================

    def summary(self, club_id: str, today: Optional[date] = None) -> TreasurySummary:
        today = today or date.today()
        players = member_service.table(club_id, MemberKind.player).list()

        expected = 0.0
        pending_amount = 0.0
        counts = {s.value: 0 for s in PaymentStatus}
        for player in players:
            fee = float(player.get("monthly_fee") or 0)
            status = player.get("payment_status") or PaymentStatus.pending.value
            counts[status] = counts.get(status, 0) + 1
            expected += fee
            if status != PaymentStatus.paid.value:
                pending_amount += fee

        sponsorship_monthly = 0.0
        sponsorship_once = 0.0
        for row in self.ledger(club_id, "sponsorships").list():
            amount = float(row.get("amount") or 0)
            if row.get("frequency") == SponsorshipFrequency.one_time.value:
                sponsorship_once += amount
            elif _is_current(row, today):
                sponsorship_monthly += _monthly(amount, row.get("frequency"))

        payments_total = 0.0
        for row in self.ledger(club_id, "payments").list():
            targets = len(row.get("target_member_ids") or []) or 1
            payments_total += float(row.get("amount") or 0) * targets

        monthly_expenses = 0.0
        one_off_expenses = 0.0
        for row in self.ledger(club_id, "expenses").list():
            amount = float(row.get("amount") or 0)
            recurrence = row.get("recurrence") or ExpenseRecurrence.none.value
            if recurrence == ExpenseRecurrence.none.value:
                one_off_expenses += amount
            else:
                monthly_expenses += _monthly(amount, recurrence)

        return TreasurySummary(
            expected_fee_income=round(expected, 2),
            pending_fee_amount=round(pending_amount, 2),
            paid_count=counts[PaymentStatus.paid.value],
            pending_count=counts[PaymentStatus.pending.value],
            overdue_count=counts[PaymentStatus.overdue.value],
            sponsorship_monthly_income=round(sponsorship_monthly, 2),
            sponsorship_one_time_total=round(sponsorship_once, 2),
            one_time_payments_total=round(payments_total, 2),
            monthly_expenses=round(monthly_expenses, 2),
            one_off_expenses_total=round(one_off_expenses, 2),
            monthly_balance=round(expected + sponsorship_monthly - monthly_expenses, 2),
            generated_at=datetime.now(timezone.utc),
        )


treasury_service = TreasuryService()
