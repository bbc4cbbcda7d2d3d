"""
Waitlist sweeper: promotes the earliest waiting attendees into free seats.

Runs inside the caller's transaction; the caller holds the event lock and
commits.
"""
from typing import Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from attendance.core.logging import logger
from attendance.core.timeutils import utcnow
from attendance.db import repositories as repo
from attendance.db.models.event import Event
from attendance.db.models.rsvp import RSVP, RSVPStatusEnum
from attendance.services.capacity import summarize
from attendance.services.transitions import apply_status, log_action_for

PROMOTION_REASON = "waitlist-promoted"


async def sweep(
    session: AsyncSession,
    event: Event,
    actor_id=None,
    exclude: Iterable = (),
) -> List[RSVP]:
    """
    Promote waitlisted RSVPs of ``event`` while it has free seats.

    Promotion is first come, first served: ascending ``waitlisted_at``, ties
    broken by RSVP id. ``waitlisted_at`` is kept on promoted rows. Rows whose
    id is in ``exclude`` are skipped, which keeps an attendee that was just
    moved to the waitlist from being promoted straight back.

    Returns:
        Promoted RSVPs in promotion order, empty when there was nothing to do
    """
    summary = summarize(event.capacity, await repo.list_rsvp_statuses(session, event.id))
    if summary.is_full or summary.waitlist_count == 0:
        return []

    skipped = set(exclude)
    free_slots = summary.free_slots
    now = utcnow()
    promoted: List[RSVP] = []
    for rsvp in await repo.list_waitlisted(session, event.id):
        if free_slots is not None and free_slots <= 0:
            break
        if rsvp.id in skipped:
            continue
        apply_status(rsvp, RSVPStatusEnum.CONFIRMED, now)
        await repo.add_attendance_log(
            session,
            event.id,
            rsvp.user_id,
            log_action_for(RSVPStatusEnum.CONFIRMED),
            reason=PROMOTION_REASON,
            actor_id=actor_id,
        )
        promoted.append(rsvp)
        if free_slots is not None:
            free_slots -= 1

    if promoted:
        await session.flush()
        logger.info(f"Promoted {len(promoted)} waitlisted RSVP(s) for event {event.id}")
    return promoted
