from fastapi import APIRouter, Depends, Query
from attendance.schemas import UpcomingSweepResponse
from attendance.db.session import get_session
from attendance.db.models.user import RoleEnum
from attendance.services.rsvp_service import RSVPService
from attendance.auth import role_required
from attendance.core.config import settings
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/waitlists", tags=["waitlists"])


@router.post("/sweep", response_model=UpcomingSweepResponse)
async def sweep_upcoming_waitlists(
    hours_ahead: int = Query(settings.UPCOMING_SWEEP_HOURS, alias="hoursAhead", ge=1, le=24 * 14),
    user=Depends(role_required(RoleEnum.admin)),
    session: AsyncSession = Depends(get_session),
):
    """
    Promote waitlisted attendees of every event starting within ``hoursAhead`` hours.

    Meant for the platform scheduler; admin only.
    """
    results = await RSVPService(session).sweep_upcoming(hours_ahead)
    return {"results": results}
