from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, CheckConstraint, Uuid
import uuid
from sqlalchemy.orm import relationship
from attendance.db.session import Base
from attendance.core.timeutils import utcnow


class Event(Base):
    """
    Event as seen by the attendance core.

    Events are created and edited by the events service; attendance only reads
    the capacity, the waitlist switch and the organizer identities.
    """

    __tablename__ = "events"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    capacity = Column(Integer, nullable=True)
    waitlist_enabled = Column(Boolean, nullable=False, default=True)
    organizer_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    organizer = relationship("User")
    co_organizers = relationship("EventCoOrganizer", cascade="all, delete-orphan", lazy="selectin")

    __table_args__ = (
        Index('idx_event_date', 'starts_at'),
        Index('idx_event_organizer', 'organizer_id'),
        CheckConstraint('capacity IS NULL OR capacity >= 0', name='ck_events_capacity'),
    )

    @property
    def co_organizer_ids(self) -> set:
        return {co.user_id for co in self.co_organizers}

    def is_organizer(self, user_id) -> bool:
        return user_id is not None and (user_id == self.organizer_id or user_id in self.co_organizer_ids)


class EventCoOrganizer(Base):
    __tablename__ = "event_co_organizers"
    event_id = Column(Uuid, ForeignKey("events.id"), primary_key=True)
    user_id = Column(Uuid, ForeignKey("users.id"), primary_key=True)
