"""
Training Schedule Models
"""

from datetime import date as Date
from enum import Enum
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, model_validator

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Weekday(str, Enum):
    """Days in schedule order, Monday first"""
    monday = "Lunes"
    tuesday = "Martes"
    wednesday = "Miércoles"
    thursday = "Jueves"
    friday = "Viernes"
    saturday = "Sábado"
    sunday = "Domingo"


WEEKDAYS = list(Weekday)


def empty_week() -> Dict[str, list]:
    return {day.value: [] for day in WEEKDAYS}


class Venue(BaseModel):
    id: str
    name: str


class VenueCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ScheduleEntry(BaseModel):
    """One training slot of a team"""
    id: str
    team_id: str
    team_name: str
    venue_id: Optional[str] = None
    venue_name: str
    start_time: str
    end_time: str


class Assignment(BaseModel):
    """A team training at a venue between two times on one day"""
    team_id: str
    venue_id: str
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class DayScheduleUpdate(BaseModel):
    """Replaces the day's slots of every team it names"""
    assignments: List[Assignment] = Field(..., min_length=1)


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ScheduleTemplate(BaseModel):
    id: str
    name: str
    is_general: bool = False
    venues: List[Venue] = []
    weekly_schedule: Dict[Weekday, List[ScheduleEntry]] = {}


class CalendarEvent(BaseModel):
    id: str
    title: str
    date: Date
    start_time: str
    end_time: str
    type: str = "Entrenamiento"
    team_id: str
    team_name: str
    location: Optional[str] = None
