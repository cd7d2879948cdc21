"""
Event schemas.

The active-event payload keeps the nested ``event_departments`` /
``event_volunteers`` shape the volunteer dashboard renders.
"""
from typing import Optional
import datetime as dt
from pydantic import BaseModel


class DepartmentInfo(BaseModel):
    id: int
    name: str
    leader: str = "N/A"


class EventDepartmentInfo(BaseModel):
    department_id: int
    departments: Optional[DepartmentInfo] = None


class VolunteerInfo(BaseModel):
    id: int
    name: str
    initials: Optional[str] = None


class EventVolunteerInfo(BaseModel):
    volunteer_id: int
    department_id: int
    present: Optional[bool] = None
    volunteers: Optional[VolunteerInfo] = None


class EventWindowResponse(BaseModel):
    id: int
    name: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    status: str
    local: Optional[str] = None
    observations: Optional[str] = None
    color: Optional[str] = None
    event_departments: list[EventDepartmentInfo] = []
    event_volunteers: list[EventVolunteerInfo] = []


class ActiveEventResponse(BaseModel):
    activeEvent: Optional[EventWindowResponse] = None
