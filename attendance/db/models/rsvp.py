from sqlalchemy import Column, DateTime, ForeignKey, Enum, Index, UniqueConstraint, Uuid
import uuid
from sqlalchemy.orm import relationship
from attendance.db.session import Base
from attendance.core.timeutils import utcnow
import enum


class RSVPStatusEnum(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"
    CANCELLED = "CANCELLED"
    CHECKED_IN = "CHECKED_IN"
    NO_SHOW = "NO_SHOW"


# Statuses that occupy a seat when counting against capacity
COUNTED_STATUSES = frozenset({RSVPStatusEnum.CONFIRMED, RSVPStatusEnum.CHECKED_IN})


class RSVP(Base):
    """
    One user's attendance record for one event.

    Rows are never deleted: every status change mutates the same row, and the
    per-state timestamps are kept as history once set.
    """

    __tablename__ = "rsvps"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    status = Column(Enum(RSVPStatusEnum, name="rsvp_status"), nullable=False)
    waitlisted_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User")
    event = relationship("Event")

    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_user_event_rsvp'),
        Index('idx_rsvp_user', 'user_id'),
        Index('idx_rsvp_event_status', 'event_id', 'status'),
        Index('idx_rsvp_waitlist_order', 'event_id', 'waitlisted_at', 'id'),
    )
