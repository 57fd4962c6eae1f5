"""
Training Schedule Service

A club keeps named schedule templates. Each template has its own venues
and a Monday-to-Sunday list of hourly training slots per team. The
"General" template is created on first use and feeds the club calendar.
"""

import calendar
import uuid
from datetime import date, datetime, timedelta
from typing import Optional, List, Dict, Any

from loguru import logger

from database.supabase_client import ClubTable
from ..errors import InvalidRequestError, NotFoundError
from .models import (
    Assignment,
    CalendarEvent,
    ScheduleTemplate,
    WEEKDAYS,
    Weekday,
    empty_week,
)

GENERAL_TEMPLATE_NAME = "General"
SLOT_LENGTH = timedelta(hours=1)


def hourly_slots(start_time: str, end_time: str) -> List[tuple]:
    """
    Split a time range into one-hour (start, end) slots

    The last slot ends at end_time even when shorter than an hour.
    """
    current = datetime.strptime(start_time, "%H:%M")
    end = datetime.strptime(end_time, "%H:%M")
    slots = []
    while current < end:
        following = min(current + SLOT_LENGTH, end)
        slots.append((current.strftime("%H:%M"), following.strftime("%H:%M")))
        current = following
    return slots


class ScheduleService:
    """Schedule template service"""

    def table(self, club_id: str) -> ClubTable:
        return ClubTable("schedule_templates", club_id)

    def to_response(self, row: Dict[str, Any]) -> ScheduleTemplate:
        weekly = {**empty_week(), **(row.get("weekly_schedule") or {})}
        return ScheduleTemplate(
            id=row["id"],
            name=row.get("name") or GENERAL_TEMPLATE_NAME,
            is_general=bool(row.get("is_general")),
            venues=row.get("venues") or [],
            weekly_schedule=weekly,
        )

    def _get(self, club_id: str, template_id: str) -> Dict[str, Any]:
        row = self.table(club_id).get(template_id)
        if not row:
            raise NotFoundError("errors.not_found", entity="Schedule")
        return row

    def _insert(self, club_id: str, name: str, is_general: bool = False) -> Dict[str, Any]:
        return self.table(club_id).insert({
            "name": name,
            "is_general": is_general,
            "venues": [],
            "weekly_schedule": empty_week(),
        })

    # =============================================
    # Templates
    # =============================================

    def list_templates(self, club_id: str) -> List[ScheduleTemplate]:
        rows = self.table(club_id).list(order_by="created_at")
        if not rows:
            logger.info(f"Creating the general schedule for club {club_id}")
            rows = [self._insert(club_id, GENERAL_TEMPLATE_NAME, is_general=True)]
        return [self.to_response(r) for r in rows]

    def get_template(self, club_id: str, template_id: str) -> ScheduleTemplate:
        return self.to_response(self._get(club_id, template_id))

    def create_template(self, club_id: str, name: str) -> ScheduleTemplate:
        row = self._insert(club_id, name.strip())
        logger.info(f"Schedule template {row['id']} ({row['name']}) created for club {club_id}")
        return self.to_response(row)

    def rename_template(self, club_id: str, template_id: str, name: str) -> ScheduleTemplate:
        row = self._get(club_id, template_id)
        updated = self.table(club_id).update(template_id, {"name": name.strip()})
        return self.to_response(updated or {**row, "name": name.strip()})

    def delete_template(self, club_id: str, template_id: str) -> None:
        row = self._get(club_id, template_id)
        if row.get("is_general"):
            raise InvalidRequestError("schedules.general_locked")
        self.table(club_id).delete(template_id)
        logger.info(f"Schedule template {template_id} deleted for club {club_id}")

    # =============================================
    # Venues
    # =============================================

    def add_venue(self, club_id: str, template_id: str, name: str) -> ScheduleTemplate:
        row = self._get(club_id, template_id)
        venues = (row.get("venues") or []) + [{"id": str(uuid.uuid4()), "name": name.strip()}]
        updated = self.table(club_id).update(template_id, {"venues": venues})
        return self.to_response(updated or {**row, "venues": venues})

    def remove_venue(self, club_id: str, template_id: str, venue_id: str) -> ScheduleTemplate:
        """Drop a venue; slots already planned there keep its name"""
        row = self._get(club_id, template_id)
        venues = row.get("venues") or []
        remaining = [v for v in venues if v.get("id") != venue_id]
        if len(remaining) == len(venues):
            raise NotFoundError("errors.not_found", entity="Venue")
        updated = self.table(club_id).update(template_id, {"venues": remaining})
        return self.to_response(updated or {**row, "venues": remaining})

    # =============================================
    # Weekly schedule
    # =============================================

    def set_day(
        self,
        club_id: str,
        template_id: str,
        day: Weekday,
        assignments: List[Assignment]
    ) -> ScheduleTemplate:
        """
        Save a day's assignments as hourly slots

        Teams named in the assignments lose their previous slots for that
        day; other teams' slots are kept.
        """
        row = self._get(club_id, template_id)
        venues = {v["id"]: v for v in row.get("venues") or []}
        teams = ClubTable("teams", club_id)

        new_entries = []
        for assignment in assignments:
            team = teams.get(assignment.team_id)
            if not team:
                raise NotFoundError("errors.not_found", entity="Team")
            venue = venues.get(assignment.venue_id)
            if not venue:
                raise NotFoundError("errors.not_found", entity="Venue")

            for start, end in hourly_slots(assignment.start_time, assignment.end_time):
                new_entries.append({
                    "id": str(uuid.uuid4()),
                    "team_id": team["id"],
                    "team_name": team.get("name", ""),
                    "venue_id": venue["id"],
                    "venue_name": venue.get("name", ""),
                    "start_time": start,
                    "end_time": end,
                })

        weekly = {**empty_week(), **(row.get("weekly_schedule") or {})}
        replaced = {a.team_id for a in assignments}
        kept = [e for e in weekly[day.value] if e.get("team_id") not in replaced]
        weekly[day.value] = sorted(kept + new_entries, key=lambda e: (e["start_time"], e["team_name"]))

        updated = self.table(club_id).update(template_id, {"weekly_schedule": weekly})
        logger.info(f"Schedule {template_id}: {len(new_entries)} slots saved for {day.value}")
        return self.to_response(updated or {**row, "weekly_schedule": weekly})

    def remove_entry(self, club_id: str, template_id: str, day: Weekday, entry_id: str) -> ScheduleTemplate:
        row = self._get(club_id, template_id)
        weekly = {**empty_week(), **(row.get("weekly_schedule") or {})}
        entries = weekly[day.value]
        weekly[day.value] = [e for e in entries if e.get("id") != entry_id]
        if len(weekly[day.value]) == len(entries):
            raise NotFoundError("errors.not_found", entity="Slot")
        updated = self.table(club_id).update(template_id, {"weekly_schedule": weekly})
        return self.to_response(updated or {**row, "weekly_schedule": weekly})

    # =============================================
    # Calendar
    # =============================================

    def calendar(
        self,
        club_id: str,
        year: int,
        month: int,
        team_id: Optional[str] = None
    ) -> List[CalendarEvent]:
        """Trainings of the general schedule repeated over every day of a month"""
        general = self.table(club_id).find_one(is_general=True)
        if not general:
            return []
        weekly = general.get("weekly_schedule") or {}

        events = []
        for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
            day = date(year, month, day_number)
            for entry in weekly.get(WEEKDAYS[day.weekday()].value) or []:
                if team_id and entry.get("team_id") != team_id:
                    continue
                events.append(CalendarEvent(
                    id=f"{entry['id']}-{day.isoformat()}",
                    title=f"{entry['start_time']} - {entry.get('team_name', '')}",
                    date=day,
                    start_time=entry["start_time"],
                    end_time=entry["end_time"],
                    team_id=entry["team_id"],
                    team_name=entry.get("team_name", ""),
                    location=entry.get("venue_name"),
                ))
        return events


schedule_service = ScheduleService()
