"""Database models package."""
from attendance.db.models.user import User, RoleEnum
from attendance.db.models.event import Event, EventCoOrganizer
from attendance.db.models.rsvp import RSVP, RSVPStatusEnum, COUNTED_STATUSES
from attendance.db.models.feedback import EventFeedback
from attendance.db.models.attendance_log import AttendanceLog, AttendanceActionEnum

__all__ = [
    "User", "RoleEnum", "Event", "EventCoOrganizer", "RSVP", "RSVPStatusEnum",
    "COUNTED_STATUSES", "EventFeedback", "AttendanceLog", "AttendanceActionEnum",
]
