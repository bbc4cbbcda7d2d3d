from pydantic import BaseModel, ConfigDict, StrictInt
from pydantic.alias_generators import to_camel
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from attendance.db.models.rsvp import RSVPStatusEnum
from attendance.db.models.attendance_log import AttendanceActionEnum
from attendance.services.transitions import RsvpAction


class CamelModel(BaseModel):
    """Base schema serialising to the camelCase JSON used by the web clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserProfileOut(CamelModel):
    id: UUID
    full_name: Optional[str] = None
    image_url: Optional[str] = None


class RSVPOut(CamelModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    user: Optional[UserProfileOut] = None
    status: RSVPStatusEnum
    waitlisted_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None


class AttendanceSummaryOut(CamelModel):
    confirmed_count: int
    waitlist_count: int
    capacity: Optional[int] = None
    is_full: bool


class FeedbackOut(CamelModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    user: Optional[UserProfileOut] = None
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AttendanceMeta(CamelModel):
    total_rsvps: int
    total_feedback: int
    average_rating: Optional[float] = None


class AttendanceOverview(CamelModel):
    rsvps: List[RSVPOut]
    summary: AttendanceSummaryOut
    feedback: List[FeedbackOut]
    meta: AttendanceMeta


class RSVPActionRequest(CamelModel):
    """Body of ``POST /events/{event_id}/rsvp``; range checks on rating happen in the service."""

    action: RsvpAction
    target_user_id: Optional[UUID] = None
    rating: Optional[StrictInt] = None
    comment: Optional[str] = None


class RSVPActionResponse(AttendanceOverview):
    action: RsvpAction
    promoted: List[UUID] = []


class AttendanceLogOut(CamelModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    action: AttendanceActionEnum
    reason: Optional[str] = None
    actor_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class UpcomingSweepResult(CamelModel):
    event_id: UUID
    promoted: int


class UpcomingSweepResponse(CamelModel):
    results: List[UpcomingSweepResult]
