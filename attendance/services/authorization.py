"""
Authorization gate for attendance actions.

Organizer-only actions are open to the event organizer and its
co-organizers. Self-service actions are open to the acting user on their own
RSVP; organizers may also cancel on behalf of an attendee.
"""
from typing import Optional

from attendance.core.errors import ForbiddenError, UnauthorizedError
from attendance.db.models.event import Event
from attendance.services.transitions import RsvpAction

SELF_SERVICE_ACTIONS = frozenset({RsvpAction.JOIN, RsvpAction.CANCEL})


def require_actor(actor_id) -> None:
    if actor_id is None:
        raise UnauthorizedError("Authentication required")


def require_organizer(event: Event, actor_id) -> None:
    """Raise unless ``actor_id`` organizes or co-organizes ``event``."""
    require_actor(actor_id)
    if not event.is_organizer(actor_id):
        raise ForbiddenError("User lacks organizer privileges for this event")


def authorize(event: Event, actor_id, action: RsvpAction, target_user_id: Optional[object] = None) -> None:
    """
    Decide whether ``actor_id`` may perform ``action`` on ``target_user_id``'s RSVP.

    Raises:
        UnauthorizedError: No authenticated actor
        ForbiddenError: Authenticated but not permitted
    """
    require_actor(actor_id)

    is_self = target_user_id is None or target_user_id == actor_id
    if action == RsvpAction.JOIN:
        if not is_self:
            raise ForbiddenError("Users can only join an event themselves")
        return

    if action == RsvpAction.CANCEL and is_self:
        return

    require_organizer(event, actor_id)


def is_organizer(event: Event, actor_id) -> bool:
    return actor_id is not None and event.is_organizer(actor_id)
