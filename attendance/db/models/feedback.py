from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Index, Uuid
import uuid
from sqlalchemy.orm import relationship
from attendance.db.session import Base
from attendance.core.timeutils import utcnow


class EventFeedback(Base):
    """Organizer rating of an attendee for an event; one row per (event, attendee)."""

    __tablename__ = "event_feedback"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_event_feedback_user'),
        CheckConstraint('rating >= 1 AND rating <= 5', name='ck_event_feedback_rating'),
        Index('idx_feedback_event', 'event_id'),
    )
