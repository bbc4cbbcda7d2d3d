"""
Unit tests for the attendance authorization gate and feedback validation.
"""
import uuid
import pytest

from attendance.core.errors import ForbiddenError, UnauthorizedError, ValidationError
from attendance.db.models.event import Event, EventCoOrganizer
from attendance.services.authorization import authorize, is_organizer, require_organizer
from attendance.services.feedback_service import validate_rating
from attendance.services.transitions import RsvpAction as A

ORGANIZER = uuid.uuid4()
CO_ORGANIZER = uuid.uuid4()
ATTENDEE = uuid.uuid4()
OTHER = uuid.uuid4()


@pytest.fixture
def event():
    return Event(
        id=uuid.uuid4(),
        title="Gate test",
        organizer_id=ORGANIZER,
        co_organizers=[EventCoOrganizer(user_id=CO_ORGANIZER)],
    )


@pytest.mark.unit
class TestAuthorize:
    """Test who may perform which action."""

    @pytest.mark.parametrize("action", [A.JOIN, A.CANCEL, A.CONFIRM, A.FEEDBACK, A.SWEEP_WAITLIST])
    def test_anonymous_actor_is_unauthorized(self, event, action):
        with pytest.raises(UnauthorizedError):
            authorize(event, None, action, ATTENDEE)

    def test_join_self(self, event):
        authorize(event, ATTENDEE, A.JOIN, ATTENDEE)

    def test_join_on_behalf_of_someone_else(self, event):
        with pytest.raises(ForbiddenError):
            authorize(event, ORGANIZER, A.JOIN, ATTENDEE)

    def test_cancel_own_rsvp(self, event):
        authorize(event, ATTENDEE, A.CANCEL, ATTENDEE)

    def test_cancel_other_rsvp_requires_organizer(self, event):
        with pytest.raises(ForbiddenError):
            authorize(event, OTHER, A.CANCEL, ATTENDEE)
        authorize(event, CO_ORGANIZER, A.CANCEL, ATTENDEE)

    @pytest.mark.parametrize("action", [A.CONFIRM, A.WAITLIST, A.CHECK_IN, A.NO_SHOW, A.FEEDBACK, A.SWEEP_WAITLIST])
    def test_organizer_actions(self, event, action):
        authorize(event, ORGANIZER, action, ATTENDEE)
        authorize(event, CO_ORGANIZER, action, ATTENDEE)
        with pytest.raises(ForbiddenError):
            authorize(event, ATTENDEE, action, ATTENDEE)

    def test_require_organizer(self, event):
        require_organizer(event, CO_ORGANIZER)
        with pytest.raises(ForbiddenError):
            require_organizer(event, OTHER)

    def test_is_organizer(self, event):
        assert is_organizer(event, ORGANIZER) is True
        assert is_organizer(event, CO_ORGANIZER) is True
        assert is_organizer(event, ATTENDEE) is False
        assert is_organizer(event, None) is False


@pytest.mark.unit
class TestValidateRating:
    """Test rating bounds."""

    @pytest.mark.parametrize("rating", [1, 3, 5])
    def test_accepts_one_to_five(self, rating):
        assert validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [0, 6, -1, 4.5, "4", True, None])
    def test_rejects_everything_else(self, rating):
        with pytest.raises(ValidationError):
            validate_rating(rating)
