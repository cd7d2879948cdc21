"""
SQLAlchemy models for Escala.
"""
from escala.models.user import User, UserRole
from escala.models.department import Department, DepartmentLeader
from escala.models.volunteer import Volunteer
from escala.models.event import Event, EventStatus, EventDepartment, EventVolunteer
from escala.models.notification import Notification, NotificationType, PushSubscription

__all__ = [
    "User",
    "UserRole",
    "Department",
    "DepartmentLeader",
    "Volunteer",
    "Event",
    "EventStatus",
    "EventDepartment",
    "EventVolunteer",
    "Notification",
    "NotificationType",
    "PushSubscription",
]
