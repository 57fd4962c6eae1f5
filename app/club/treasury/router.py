"""
Treasury Router

Fees, one-time payments, sponsorships, expenses and the monthly summary
"""

from typing import Optional, List, Type

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..dependencies import ClubUserContext, require_admin
from .models import (
    ExpenseCreate,
    ExpenseUpdate,
    FeeRow,
    OneTimePaymentCreate,
    OneTimePaymentUpdate,
    PaymentStatusUpdate,
    SponsorshipCreate,
    SponsorshipUpdate,
    TreasurySummary,
)
from .service import treasury_service

router = APIRouter(prefix="/treasury", tags=["Treasury"])


@router.get("/summary", response_model=TreasurySummary)
async def get_summary(user: ClubUserContext = Depends(require_admin)):
    """
    Monthly treasury summary

    Expected and pending fee income, sponsorships, one-time payments,
    expenses and the resulting monthly balance.
    """
    return treasury_service.summary(user.club_id)


@router.get("/fees", response_model=List[FeeRow])
async def list_fees(
    team_id: Optional[str] = Query(None),
    user: ClubUserContext = Depends(require_admin)
):
    return treasury_service.list_fees(user.club_id, team_id)


@router.patch("/fees/{player_id}", response_model=FeeRow)
async def update_fee_status(
    player_id: str,
    request: PaymentStatusUpdate,
    user: ClubUserContext = Depends(require_admin)
):
    return treasury_service.set_payment_status(user.club_id, player_id, request.payment_status)


def _register_ledger_routes(kind: str, create_model: Type[BaseModel], update_model: Type[BaseModel]):
    path = f"/{kind}"

    async def list_entries(user: ClubUserContext = Depends(require_admin)):
        return treasury_service.list_entries(user.club_id, kind)

    async def create_entry(payload: create_model, user: ClubUserContext = Depends(require_admin)):
        return treasury_service.create_entry(user.club_id, kind, payload)

    async def update_entry(
        entry_id: str,
        payload: update_model,
        user: ClubUserContext = Depends(require_admin)
    ):
        return treasury_service.update_entry(user.club_id, kind, entry_id, payload)

    async def delete_entry(entry_id: str, user: ClubUserContext = Depends(require_admin)):
        treasury_service.delete_entry(user.club_id, kind, entry_id)
        return {"success": True}

    router.add_api_route(path, list_entries, methods=["GET"], name=f"list_{kind}")
    router.add_api_route(path, create_entry, methods=["POST"], status_code=201, name=f"create_{kind}")
    router.add_api_route(f"{path}/{{entry_id}}", update_entry, methods=["PATCH"], name=f"update_{kind}")
    router.add_api_route(f"{path}/{{entry_id}}", delete_entry, methods=["DELETE"], name=f"delete_{kind}")


_register_ledger_routes("payments", OneTimePaymentCreate, OneTimePaymentUpdate)
_register_ledger_routes("sponsorships", SponsorshipCreate, SponsorshipUpdate)
_register_ledger_routes("expenses", ExpenseCreate, ExpenseUpdate)
