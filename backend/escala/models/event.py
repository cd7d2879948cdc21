"""
Event model, its department links, and volunteer participation records.
"""
from typing import Optional, TYPE_CHECKING
import datetime
from sqlalchemy import (
    String, Text, Boolean, Integer, ForeignKey, Date, Time, Enum, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum
from escala.models.base import BaseModel

if TYPE_CHECKING:
    from escala.models.department import Department
    from escala.models.volunteer import Volunteer


class EventStatus(str, enum.Enum):
    """Event status values."""
    CONFIRMED = "Confirmado"
    CANCELLED = "Cancelado"
    PENDING = "Pendente"


class Event(BaseModel):
    """Scheduled church event.

    ``date``, ``start_time`` and ``end_time`` are local wall-clock values in
    the deployment's configured time zone.
    """
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="window"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[datetime.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[datetime.time] = mapped_column(Time, nullable=False)

    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=EventStatus.PENDING,
        index=True
    )

    local: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Set once the matching reminder has been claimed by a reminder run
    notification_24h_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notification_2h_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    event_departments: Mapped[list["EventDepartment"]] = relationship(
        "EventDepartment",
        back_populates="event",
        cascade="all, delete-orphan"
    )
    event_volunteers: Mapped[list["EventVolunteer"]] = relationship(
        "EventVolunteer",
        back_populates="event",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Event {self.name} on {self.date}>"


class EventDepartment(BaseModel):
    """Department taking part in an event."""
    __tablename__ = "event_departments"
    __table_args__ = (
        UniqueConstraint("event_id", "department_id", name="uq_event_departments_event_department"),
    )

    event_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    department_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False
    )

    event: Mapped["Event"] = relationship(
        "Event",
        back_populates="event_departments"
    )
    department: Mapped["Department"] = relationship("Department")

    def __repr__(self) -> str:
        return f"<EventDepartment {self.department_id} in event {self.event_id}>"


class EventVolunteer(BaseModel):
    """Participation record for a volunteer scheduled in a department for an event.

    ``present`` is tri-state: ``None`` not yet confirmed, ``True`` confirmed
    present, ``False`` marked absent by the sweep.
    """
    __tablename__ = "event_volunteers"
    __table_args__ = (
        UniqueConstraint(
            "event_id", "volunteer_id", "department_id",
            name="uq_event_volunteers_event_volunteer_department"
        ),
    )

    event_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    volunteer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("volunteers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    department_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False
    )

    present: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=None, index=True)

    event: Mapped["Event"] = relationship(
        "Event",
        back_populates="event_volunteers"
    )
    volunteer: Mapped["Volunteer"] = relationship("Volunteer")
    department: Mapped["Department"] = relationship("Department")

    def __repr__(self) -> str:
        return f"<EventVolunteer {self.volunteer_id} in event {self.event_id} dept {self.department_id}>"
