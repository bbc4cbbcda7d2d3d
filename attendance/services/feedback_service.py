from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from attendance.core.errors import ValidationError
from attendance.db import repositories as repo
from attendance.db.models.feedback import EventFeedback

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating) -> int:
    """Return ``rating`` if it is an integer from 1 to 5, raise ValidationError otherwise."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


async def upsert_feedback(
    session: AsyncSession,
    event_id,
    user_id,
    rating: int,
    comment: Optional[str] = None,
) -> EventFeedback:
    """
    Insert or overwrite the feedback for (event, user).

    A resubmission replaces rating and comment; ``created_at`` keeps the time
    of the first submission.
    """
    rating = validate_rating(rating)
    feedback = await repo.get_feedback(session, event_id, user_id)
    if feedback is None:
        feedback = EventFeedback(event_id=event_id, user_id=user_id, rating=rating, comment=comment)
        session.add(feedback)
    else:
        feedback.rating = rating
        feedback.comment = comment
    await session.flush()
    return feedback


async def average_rating(session: AsyncSession, event_id) -> Optional[float]:
    return await repo.get_average_rating(session, event_id)
