from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Index, Uuid
import uuid
from attendance.db.session import Base
from attendance.core.timeutils import utcnow
import enum


class AttendanceActionEnum(str, enum.Enum):
    RSVP_CONFIRMED = "RSVP_CONFIRMED"
    RSVP_WAITLISTED = "RSVP_WAITLISTED"
    RSVP_CANCELLED = "RSVP_CANCELLED"
    CHECKED_IN = "CHECKED_IN"
    MARKED_NO_SHOW = "MARKED_NO_SHOW"


class AttendanceLog(Base):
    """Append-only audit trail of RSVP status changes."""

    __tablename__ = "attendance_logs"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    action = Column(Enum(AttendanceActionEnum, name="attendance_action"), nullable=False)
    reason = Column(String(64), nullable=True)
    actor_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index('idx_attendance_log_event', 'event_id', 'created_at'),
    )
