from fastapi import APIRouter, Depends, Request
from attendance.schemas import (
    AttendanceOverview,
    AttendanceLogOut,
    RSVPActionRequest,
    RSVPActionResponse,
)
from attendance.db.session import get_session
from attendance.services.rsvp_service import RSVPService
from attendance.auth import get_current_user
from attendance.core.config import settings
from attendance.core.rate_limit import limiter
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID

router = APIRouter(prefix="/events/{event_id}/rsvp", tags=["rsvps"])


def get_rsvp_service(session: AsyncSession = Depends(get_session)) -> RSVPService:
    return RSVPService(session)


@router.get("", response_model=AttendanceOverview)
async def get_attendance(
    event_id: UUID,
    user=Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """
    Organizer console data: every RSVP, the attendance summary and feedback.

    Only the organizer and co-organizers of the event may read it.
    """
    return await rsvp_service.get_overview(event_id, user.id)


@router.post("", response_model=RSVPActionResponse)
@limiter.limit(settings.RSVP_ACTION_RATE_LIMIT)
async def post_rsvp_action(
    request: Request,
    event_id: UUID,
    payload: RSVPActionRequest,
    user=Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """
    Apply an attendance action and return the refreshed attendance data.

    - join / cancel: self-service, target defaults to the caller
    - confirm, waitlist, cancel, check-in, no-show: organizer actions on targetUserId
    - sweep-waitlist: promote waitlisted users into free seats
    - feedback: rate targetUserId from 1 to 5 with an optional comment
    """
    return await rsvp_service.perform(
        event_id,
        user.id,
        payload.action,
        target_user_id=payload.target_user_id,
        rating=payload.rating,
        comment=payload.comment,
    )


@router.get("/history", response_model=List[AttendanceLogOut])
async def get_attendance_history(
    event_id: UUID,
    user=Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """Audit trail of RSVP status changes for the event, oldest first."""
    return await rsvp_service.get_history(event_id, user.id)
