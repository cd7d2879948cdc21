"""
Attendance schemas: QR payloads, mark/process responses, participation rows.
"""
from typing import Optional
from pydantic import BaseModel, Field


class AttendanceMark(BaseModel):
    """Payload encoded in a volunteer's QR code."""
    volunteerId: int = Field(..., gt=0)
    eventId: int = Field(..., gt=0)
    departmentId: int = Field(..., gt=0)


class AttendanceMarkResponse(BaseModel):
    success: bool = True
    message: str


class AttendanceErrorResponse(BaseModel):
    error: str


class AttendanceProcessResponse(BaseModel):
    success: bool = True
    message: str
    processed_events: int = 0
    marked_absent: int = 0
    notifications_sent: int = 0


class ParticipationResponse(BaseModel):
    event_id: int
    volunteer_id: int
    department_id: int
    present: Optional[bool] = None
    volunteer_name: Optional[str] = None

    class Config:
        from_attributes = True


class ScheduleVolunteer(BaseModel):
    """Schedule a volunteer into a department for an event."""
    volunteer_id: int = Field(..., gt=0)
    department_id: int = Field(..., gt=0)
