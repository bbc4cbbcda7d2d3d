"""
Attendance service: the entry point for every RSVP action.

Each mutating action runs under the per-event lock inside one database
transaction: load and lock the event, authorize, validate the transition
against fresh counts, write the row and its log entry, run the waitlist
sweep when a seat was freed, commit. Domain events are published only after
the commit succeeded.
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance.core.config import settings
from attendance.core.errors import AttendanceError, ConflictError, NotFoundError, ValidationError
from attendance.core.logging import logger
from attendance.core.timeutils import utcnow
from attendance.db import repositories as repo
from attendance.db.models.event import Event
from attendance.db.models.feedback import EventFeedback
from attendance.db.models.rsvp import RSVP, RSVPStatusEnum
from attendance.events import publisher
from attendance.services import waitlist
from attendance.services.authorization import (
    SELF_SERVICE_ACTIONS,
    authorize,
    is_organizer,
    require_actor,
    require_organizer,
)
from attendance.services.capacity import AttendanceSummary, summarize
from attendance.services.feedback_service import average_rating, upsert_feedback, validate_rating
from attendance.services.locks import event_locks
from attendance.services.transitions import (
    TRANSITION_ACTIONS,
    RsvpAction,
    apply_status,
    frees_slot,
    log_action_for,
    resolve_transition,
)
from attendance.services.user_directory import get_user_profiles

# Postgres SQLSTATEs that mean "lost a race, safe to retry"
RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}

_REASONS = {
    RsvpAction.JOIN: "joined",
    RsvpAction.CONFIRM: "organizer-confirmed",
    RsvpAction.WAITLIST: "organizer-waitlisted",
    RsvpAction.CANCEL: "organizer-cancelled",
    RsvpAction.CHECK_IN: "checked-in",
    RsvpAction.NO_SHOW: "no-show",
}


@dataclass
class ActionResult:
    rsvp: RSVP
    summary: AttendanceSummary
    previous_status: Optional[RSVPStatusEnum] = None
    promoted: List[RSVP] = field(default_factory=list)


def _is_retryable(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in RETRYABLE_SQLSTATES


def _parse_action(action) -> RsvpAction:
    try:
        return RsvpAction(action)
    except ValueError:
        raise ValidationError(f"Unknown RSVP action '{action}'")


class RSVPService:
    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _event_transaction(self, event_id):
        """Serialise on the event and commit the enclosed work atomically."""
        async with event_locks.hold(event_id):
            try:
                yield
                await self.session.commit()
            except AttendanceError:
                await self.session.rollback()
                raise
            except IntegrityError as e:
                await self.session.rollback()
                logger.warning(f"Concurrent attendance change on event {event_id}: {e.orig}")
                raise ConflictError("The RSVP was changed concurrently, retry the action") from e
            except DBAPIError as e:
                await self.session.rollback()
                if _is_retryable(e):
                    logger.warning(f"Retryable database conflict on event {event_id}: {e.orig}")
                    raise ConflictError("The event is busy, retry the action") from e
                raise
            except Exception:
                await self.session.rollback()
                raise

    async def _load_event(self, event_id, for_update: bool = False) -> Event:
        if for_update and self.session.bind is not None and self.session.bind.dialect.name == "postgresql":
            await self.session.execute(text(f"SET LOCAL lock_timeout = '{int(settings.DB_LOCK_TIMEOUT_MS)}ms'"))
        event = await repo.get_event(self.session, event_id, for_update=for_update)
        if event is None:
            raise NotFoundError("Event not found")
        return event

    async def _summary(self, event: Event) -> AttendanceSummary:
        return summarize(event.capacity, await repo.list_rsvp_statuses(self.session, event.id))

    async def apply_action(self, event_id, actor_id, action, target_user_id=None) -> ActionResult:
        """
        Apply one RSVP transition for ``target_user_id`` on ``event_id``.

        ``join`` and ``cancel`` default the target to the actor. Freeing a
        seat runs the waitlist sweep in the same transaction.

        Raises:
            UnauthorizedError, ForbiddenError, NotFoundError,
            InvalidTransitionError, CapacityExceededError, ValidationError,
            ConflictError
        """
        action = _parse_action(action)
        if action not in TRANSITION_ACTIONS:
            raise ValidationError(f"'{action.value}' does not change an RSVP")
        require_actor(actor_id)
        if target_user_id is None and action in SELF_SERVICE_ACTIONS:
            target_user_id = actor_id
        if target_user_id is None:
            raise ValidationError("targetUserId required")

        async with self._event_transaction(event_id):
            event = await self._load_event(event_id, for_update=True)
            authorize(event, actor_id, action, target_user_id)

            rsvp = await repo.get_rsvp(self.session, event.id, target_user_id)
            if rsvp is None and action != RsvpAction.JOIN:
                raise NotFoundError("RSVP not found for this user")

            previous = rsvp.status if rsvp is not None else None
            new_status = resolve_transition(previous, action, await self._summary(event), event.waitlist_enabled)
            if rsvp is None:
                rsvp = RSVP(event_id=event.id, user_id=target_user_id)
                self.session.add(rsvp)
            apply_status(rsvp, new_status, utcnow())

            reason = _REASONS[action]
            if action == RsvpAction.CANCEL and target_user_id == actor_id:
                reason = "self-cancelled"
            await repo.add_attendance_log(
                self.session, event.id, target_user_id, log_action_for(new_status),
                reason=reason, actor_id=actor_id,
            )
            await self.session.flush()

            promoted: List[RSVP] = []
            if frees_slot(previous, new_status):
                promoted = await waitlist.sweep(self.session, event, actor_id=actor_id, exclude={rsvp.id})
            summary = await self._summary(event)

        logger.info(
            f"RSVP {action.value} on event {event_id} for user {target_user_id} by {actor_id}: "
            f"{previous.value if previous else 'none'} -> {new_status.value}"
        )
        await publisher.publish_rsvp_event("updated", rsvp, action.value, actor_id)
        for promotion in promoted:
            await publisher.publish_rsvp_event("promoted", promotion, action.value, actor_id)
        return ActionResult(rsvp=rsvp, summary=summary, previous_status=previous, promoted=promoted)

    async def _sweep(self, event_id, actor_id=None, check_organizer: bool = True) -> List[RSVP]:
        async with self._event_transaction(event_id):
            event = await self._load_event(event_id, for_update=True)
            if check_organizer:
                require_organizer(event, actor_id)
            promoted = await waitlist.sweep(self.session, event, actor_id=actor_id)
        for promotion in promoted:
            await publisher.publish_rsvp_event("promoted", promotion, RsvpAction.SWEEP_WAITLIST.value, actor_id)
        return promoted

    async def sweep_waitlist(self, event_id, actor_id) -> List[RSVP]:
        """Organizer-invoked sweep, e.g. after the capacity was raised."""
        require_actor(actor_id)
        return await self._sweep(event_id, actor_id)

    async def sweep_upcoming(self, hours_ahead: int = 24) -> List[dict]:
        """
        Sweep every capacity-bound event starting within ``hours_ahead`` hours
        that still has a waitlist. Each event commits on its own.

        Returns:
            ``[{"event_id", "promoted"}]`` for events where somebody was promoted
        """
        now = utcnow()
        event_ids = await repo.list_event_ids_with_waitlist(self.session, now, now + timedelta(hours=hours_ahead))
        await self.session.commit()

        results = []
        for event_id in event_ids:
            promoted = await self._sweep(event_id, check_organizer=False)
            if promoted:
                results.append({"event_id": str(event_id), "promoted": len(promoted)})
        logger.info(f"Upcoming waitlist sweep: {len(event_ids)} event(s) checked, {len(results)} with promotions")
        return results

    async def record_feedback(
        self,
        event_id,
        actor_id,
        target_user_id,
        rating,
        comment: Optional[str] = None,
    ) -> EventFeedback:
        """Record or overwrite the organizer's rating of an attendee."""
        require_actor(actor_id)
        if target_user_id is None:
            raise ValidationError("targetUserId required")
        if rating is None:
            raise ValidationError("rating required")

        async with self._event_transaction(event_id):
            event = await self._load_event(event_id, for_update=True)
            authorize(event, actor_id, RsvpAction.FEEDBACK, target_user_id)
            validate_rating(rating)
            if await repo.get_rsvp(self.session, event.id, target_user_id) is None:
                raise NotFoundError("RSVP not found for this user")
            feedback = await upsert_feedback(self.session, event.id, target_user_id, rating, comment)
        logger.info(f"Feedback {rating}/5 recorded for user {target_user_id} on event {event_id}")
        return feedback

    async def perform(self, event_id, actor_id, action, target_user_id=None, rating=None, comment=None) -> dict:
        """Dispatch an action from the RSVP endpoint and return the refreshed overview."""
        action = _parse_action(action)
        promoted: List[RSVP] = []
        if action == RsvpAction.SWEEP_WAITLIST:
            promoted = await self.sweep_waitlist(event_id, actor_id)
        elif action == RsvpAction.FEEDBACK:
            await self.record_feedback(event_id, actor_id, target_user_id, rating, comment)
        else:
            result = await self.apply_action(event_id, actor_id, action, target_user_id)
            promoted = result.promoted

        overview = await self._overview(await self._load_event(event_id), actor_id)
        overview["action"] = action.value
        overview["promoted"] = [str(p.user_id) for p in promoted]
        return overview

    async def get_overview(self, event_id, actor_id) -> dict:
        """Organizer view: every RSVP, the summary and all feedback."""
        require_actor(actor_id)
        event = await self._load_event(event_id)
        require_organizer(event, actor_id)
        return await self._overview(event, actor_id)

    async def get_history(self, event_id, actor_id) -> list:
        require_actor(actor_id)
        event = await self._load_event(event_id)
        require_organizer(event, actor_id)
        return await repo.list_attendance_logs(self.session, event.id)

    async def _overview(self, event: Event, actor_id) -> dict:
        rsvps = await repo.list_rsvps_for_event(self.session, event.id)
        summary = summarize(event.capacity, [r.status for r in rsvps])

        if is_organizer(event, actor_id):
            feedback = await repo.list_feedback_for_event(self.session, event.id)
            average = await average_rating(self.session, event.id)
        else:
            # Self-service callers only see their own row
            rsvps = [r for r in rsvps if r.user_id == actor_id]
            feedback = []
            average = None

        profiles = await get_user_profiles(
            self.session, [r.user_id for r in rsvps] + [f.user_id for f in feedback]
        )
        return {
            "rsvps": [_rsvp_dict(r, profiles) for r in rsvps],
            "summary": summary.to_dict(),
            "feedback": [_feedback_dict(f, profiles) for f in feedback],
            "meta": {
                "total_rsvps": len(rsvps),
                "total_feedback": len(feedback),
                "average_rating": average,
            },
        }


def _rsvp_dict(rsvp: RSVP, profiles: dict) -> dict:
    return {
        "id": rsvp.id,
        "event_id": rsvp.event_id,
        "user_id": rsvp.user_id,
        "user": profiles.get(str(rsvp.user_id)),
        "status": rsvp.status,
        "waitlisted_at": rsvp.waitlisted_at,
        "confirmed_at": rsvp.confirmed_at,
        "cancelled_at": rsvp.cancelled_at,
        "checked_in_at": rsvp.checked_in_at,
    }


def _feedback_dict(feedback: EventFeedback, profiles: dict) -> dict:
    return {
        "id": feedback.id,
        "event_id": feedback.event_id,
        "user_id": feedback.user_id,
        "user": profiles.get(str(feedback.user_id)),
        "rating": feedback.rating,
        "comment": feedback.comment,
        "created_at": feedback.created_at,
        "updated_at": feedback.updated_at,
    }
