"""
Transition engine for a single RSVP.

The table below is the only place that decides which action is legal from
which status. Capacity-dependent actions resolve to different targets
depending on whether the event is full at the time of the action.
"""
import enum
from datetime import datetime
from typing import Dict, Optional, Tuple

from attendance.core.errors import CapacityExceededError, InvalidTransitionError
from attendance.db.models.attendance_log import AttendanceActionEnum
from attendance.db.models.rsvp import RSVP, RSVPStatusEnum, COUNTED_STATUSES
from attendance.services.capacity import AttendanceSummary


class RsvpAction(str, enum.Enum):
    JOIN = "join"
    CONFIRM = "confirm"
    WAITLIST = "waitlist"
    CANCEL = "cancel"
    CHECK_IN = "check-in"
    NO_SHOW = "no-show"
    SWEEP_WAITLIST = "sweep-waitlist"
    FEEDBACK = "feedback"


# Actions that change the status of one RSVP row
TRANSITION_ACTIONS = frozenset({
    RsvpAction.JOIN,
    RsvpAction.CONFIRM,
    RsvpAction.WAITLIST,
    RsvpAction.CANCEL,
    RsvpAction.CHECK_IN,
    RsvpAction.NO_SHOW,
})

S = RSVPStatusEnum

# (current status, action) -> target status. None stands for "no row yet".
TRANSITIONS: Dict[Tuple[Optional[RSVPStatusEnum], RsvpAction], RSVPStatusEnum] = {
    (None, RsvpAction.JOIN): S.CONFIRMED,
    (S.WAITLISTED, RsvpAction.CONFIRM): S.CONFIRMED,
    (S.WAITLISTED, RsvpAction.CANCEL): S.CANCELLED,
    (S.CONFIRMED, RsvpAction.CHECK_IN): S.CHECKED_IN,
    (S.CONFIRMED, RsvpAction.WAITLIST): S.WAITLISTED,
    (S.CONFIRMED, RsvpAction.CANCEL): S.CANCELLED,
    (S.CHECKED_IN, RsvpAction.NO_SHOW): S.NO_SHOW,
    (S.CHECKED_IN, RsvpAction.WAITLIST): S.WAITLISTED,
    (S.NO_SHOW, RsvpAction.CHECK_IN): S.CHECKED_IN,
    (S.NO_SHOW, RsvpAction.WAITLIST): S.WAITLISTED,
    (S.CANCELLED, RsvpAction.CONFIRM): S.CONFIRMED,
}

# Transitions that fall back to the waitlist instead of failing when full
_WAITLIST_WHEN_FULL = frozenset({
    (None, RsvpAction.JOIN),
    (S.CANCELLED, RsvpAction.CONFIRM),
})

_LOG_ACTIONS = {
    S.CONFIRMED: AttendanceActionEnum.RSVP_CONFIRMED,
    S.WAITLISTED: AttendanceActionEnum.RSVP_WAITLISTED,
    S.CANCELLED: AttendanceActionEnum.RSVP_CANCELLED,
    S.CHECKED_IN: AttendanceActionEnum.CHECKED_IN,
    S.NO_SHOW: AttendanceActionEnum.MARKED_NO_SHOW,
}


def resolve_transition(
    current: Optional[RSVPStatusEnum],
    action: RsvpAction,
    summary: AttendanceSummary,
    waitlist_enabled: bool = True,
) -> RSVPStatusEnum:
    """
    Return the status an RSVP ends up in when ``action`` is applied.

    Args:
        current: Current status, None if the user has no RSVP yet
        action: Requested action
        summary: Attendance summary of the event before the action
        waitlist_enabled: Whether the event accepts waitlisted attendees

    Raises:
        InvalidTransitionError: If the action is not legal from ``current``
        CapacityExceededError: If the action would take a seat on a full event
    """
    target = TRANSITIONS.get((current, action))
    if target is None:
        state = current.value if current is not None else "no RSVP"
        raise InvalidTransitionError(f"Cannot {action.value} from {state}")

    if target == S.WAITLISTED and not waitlist_enabled:
        raise InvalidTransitionError("Waitlist is disabled for this event")

    entering_seat = target in COUNTED_STATUSES and current not in COUNTED_STATUSES
    if entering_seat and summary.is_full:
        if (current, action) in _WAITLIST_WHEN_FULL and waitlist_enabled:
            return S.WAITLISTED
        raise CapacityExceededError(f"Event capacity reached ({summary.capacity} attendees)")
    return target


def frees_slot(previous: Optional[RSVPStatusEnum], new: RSVPStatusEnum) -> bool:
    """True when a row leaves a counted status, which may let the waitlist move up."""
    return previous in COUNTED_STATUSES and new not in COUNTED_STATUSES


def apply_status(rsvp: RSVP, status: RSVPStatusEnum, now: datetime) -> None:
    """
    Move ``rsvp`` to ``status`` and stamp the timestamp belonging to it.

    Timestamps of other states are left untouched so the organizer dashboard
    keeps the history (a no-show still shows when it was checked in).
    """
    rsvp.status = status
    if status == S.WAITLISTED:
        rsvp.waitlisted_at = now
    elif status == S.CONFIRMED:
        rsvp.confirmed_at = now
    elif status == S.CANCELLED:
        rsvp.cancelled_at = now
    elif status == S.CHECKED_IN:
        rsvp.checked_in_at = now


def log_action_for(status: RSVPStatusEnum) -> AttendanceActionEnum:
    return _LOG_ACTIONS[status]
