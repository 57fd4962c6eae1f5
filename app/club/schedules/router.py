"""
Schedules Router

Schedule templates, their venues and weekly slots, and the club calendar
"""

from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, Query

from ..dependencies import ClubUserContext, get_current_club_user, require_admin
from .models import (
    CalendarEvent,
    DayScheduleUpdate,
    ScheduleTemplate,
    TemplateCreate,
    VenueCreate,
    Weekday,
)
from .service import schedule_service

router = APIRouter(tags=["Schedules"])


@router.get("/schedules", response_model=List[ScheduleTemplate])
async def list_schedules(user: ClubUserContext = Depends(get_current_club_user)):
    """Schedule templates; the General one is created on first use"""
    return schedule_service.list_templates(user.club_id)


@router.post("/schedules", response_model=ScheduleTemplate, status_code=201)
async def create_schedule(request: TemplateCreate, user: ClubUserContext = Depends(require_admin)):
    return schedule_service.create_template(user.club_id, request.name)


@router.get("/schedules/{template_id}", response_model=ScheduleTemplate)
async def get_schedule(template_id: str, user: ClubUserContext = Depends(get_current_club_user)):
    return schedule_service.get_template(user.club_id, template_id)


@router.patch("/schedules/{template_id}", response_model=ScheduleTemplate)
async def rename_schedule(
    template_id: str,
    request: TemplateCreate,
    user: ClubUserContext = Depends(require_admin)
):
    return schedule_service.rename_template(user.club_id, template_id, request.name)


@router.delete("/schedules/{template_id}")
async def delete_schedule(template_id: str, user: ClubUserContext = Depends(require_admin)):
    schedule_service.delete_template(user.club_id, template_id)
    return {"success": True}


@router.post("/schedules/{template_id}/venues", response_model=ScheduleTemplate, status_code=201)
async def add_venue(
    template_id: str,
    request: VenueCreate,
    user: ClubUserContext = Depends(require_admin)
):
    return schedule_service.add_venue(user.club_id, template_id, request.name)


@router.delete("/schedules/{template_id}/venues/{venue_id}", response_model=ScheduleTemplate)
async def remove_venue(template_id: str, venue_id: str, user: ClubUserContext = Depends(require_admin)):
    return schedule_service.remove_venue(user.club_id, template_id, venue_id)


@router.put("/schedules/{template_id}/days/{day}", response_model=ScheduleTemplate)
async def set_day_schedule(
    template_id: str,
    day: Weekday,
    request: DayScheduleUpdate,
    user: ClubUserContext = Depends(require_admin)
):
    """
    Assign teams to time ranges on one weekday

    Each range is stored as hourly slots and replaces the team's previous
    slots for that day.
    """
    return schedule_service.set_day(user.club_id, template_id, day, request.assignments)


@router.delete("/schedules/{template_id}/days/{day}/{entry_id}", response_model=ScheduleTemplate)
async def remove_slot(
    template_id: str,
    day: Weekday,
    entry_id: str,
    user: ClubUserContext = Depends(require_admin)
):
    return schedule_service.remove_entry(user.club_id, template_id, day, entry_id)


@router.get("/calendar", response_model=List[CalendarEvent])
async def get_calendar(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    team_id: Optional[str] = Query(None),
    user: ClubUserContext = Depends(get_current_club_user)
):
    """Trainings of the General schedule for a month (default: this month)"""
    today = date.today()
    return schedule_service.calendar(
        user.club_id,
        year or today.year,
        month or today.month,
        team_id
    )
