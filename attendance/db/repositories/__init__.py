"""
Repository layer for database operations.

Async functions over an ``AsyncSession`` for users, events, RSVPs, feedback
and the attendance log. Repositories never commit; the attendance service
owns the transaction boundary of every action.
"""
from sqlalchemy import select, func, exists
from sqlalchemy.ext.asyncio import AsyncSession
from attendance.db.models.user import User
from attendance.db.models.event import Event
from attendance.db.models.rsvp import RSVP, RSVPStatusEnum
from attendance.db.models.feedback import EventFeedback
from attendance.db.models.attendance_log import AttendanceLog, AttendanceActionEnum
from typing import Optional, List
from datetime import datetime


async def get_user(db: AsyncSession, user_id) -> Optional[User]:
    """
    Retrieve user by ID.

    Args:
        db: Database session
        user_id: User's UUID

    Returns:
        User object if found, None otherwise
    """
    q = select(User).where(User.id == user_id)
    res = await db.execute(q)
    return res.scalars().first()


async def get_event(db: AsyncSession, event_id, for_update: bool = False) -> Optional[Event]:
    """
    Retrieve an event with its co-organizers.

    With ``for_update`` the event row is locked until the end of the current
    transaction, which serialises attendance mutations for that event across
    processes. Backends without row locks (SQLite) ignore the clause.
    """
    q = select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update(of=Event)
    res = await db.execute(q)
    return res.scalars().first()


async def get_rsvp(db: AsyncSession, event_id, user_id) -> Optional[RSVP]:
    """Get a user's RSVP for a specific event, or None."""
    q = select(RSVP).where(
        RSVP.event_id == event_id,
        RSVP.user_id == user_id,
    )
    res = await db.execute(q)
    return res.scalars().first()


async def list_rsvps_for_event(db: AsyncSession, event_id) -> List[RSVP]:
    q = select(RSVP).where(RSVP.event_id == event_id).order_by(RSVP.created_at.asc(), RSVP.id.asc())
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_rsvp_statuses(db: AsyncSession, event_id) -> List[RSVPStatusEnum]:
    """Current status of every RSVP row of an event, the input of the capacity policy."""
    q = select(RSVP.status).where(RSVP.event_id == event_id)
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_waitlisted(db: AsyncSession, event_id) -> List[RSVP]:
    """Waitlisted RSVPs in promotion order: earliest ``waitlisted_at`` first, ties by id."""
    q = (
        select(RSVP)
        .where(RSVP.event_id == event_id, RSVP.status == RSVPStatusEnum.WAITLISTED)
        .order_by(RSVP.waitlisted_at.asc(), RSVP.id.asc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def get_feedback(db: AsyncSession, event_id, user_id) -> Optional[EventFeedback]:
    q = select(EventFeedback).where(
        EventFeedback.event_id == event_id,
        EventFeedback.user_id == user_id,
    )
    res = await db.execute(q)
    return res.scalars().first()


async def list_feedback_for_event(db: AsyncSession, event_id) -> List[EventFeedback]:
    """Feedback for an event, newest first."""
    q = (
        select(EventFeedback)
        .where(EventFeedback.event_id == event_id)
        .order_by(EventFeedback.created_at.desc(), EventFeedback.id.asc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def get_average_rating(db: AsyncSession, event_id) -> Optional[float]:
    """Mean feedback rating for an event, None when nobody was rated."""
    q = select(func.avg(EventFeedback.rating)).where(EventFeedback.event_id == event_id)
    res = await db.execute(q)
    value = res.scalar()
    return float(value) if value is not None else None


async def add_attendance_log(
    db: AsyncSession,
    event_id,
    user_id,
    action: AttendanceActionEnum,
    reason: Optional[str] = None,
    actor_id=None,
) -> AttendanceLog:
    entry = AttendanceLog(
        event_id=event_id,
        user_id=user_id,
        action=action,
        reason=reason,
        actor_id=actor_id,
    )
    db.add(entry)
    return entry


async def list_attendance_logs(db: AsyncSession, event_id) -> List[AttendanceLog]:
    q = (
        select(AttendanceLog)
        .where(AttendanceLog.event_id == event_id)
        .order_by(AttendanceLog.created_at.asc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_event_ids_with_waitlist(
    db: AsyncSession,
    starts_after: datetime,
    starts_before: datetime,
) -> List:
    """
    IDs of capacity-bound events starting in the given window that still have
    somebody on the waitlist.
    """
    has_waitlist = exists().where(
        RSVP.event_id == Event.id,
        RSVP.status == RSVPStatusEnum.WAITLISTED,
    )
    q = (
        select(Event.id)
        .where(
            Event.starts_at >= starts_after,
            Event.starts_at <= starts_before,
            Event.capacity.is_not(None),
            Event.waitlist_enabled.is_(True),
            has_waitlist,
        )
        .order_by(Event.starts_at.asc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())
