"""
Typed failures raised by the attendance core.

Every failure carries a stable ``kind`` that API clients can branch on and
the HTTP status it maps to. The FastAPI handler in ``attendance.main``
renders them as ``{"detail": message, "code": kind}``.
"""


class AttendanceError(Exception):
    """Base class for all attendance failures."""

    kind = "AttendanceError"
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.kind}


class UnauthorizedError(AttendanceError):
    kind = "Unauthorized"
    status_code = 401


class ForbiddenError(AttendanceError):
    kind = "Forbidden"
    status_code = 403


class NotFoundError(AttendanceError):
    kind = "NotFound"
    status_code = 404


class InvalidTransitionError(AttendanceError):
    kind = "InvalidTransition"
    status_code = 400


class CapacityExceededError(AttendanceError):
    kind = "CapacityExceeded"
    status_code = 400


class ValidationError(AttendanceError):
    kind = "ValidationError"
    status_code = 400


class ConflictError(AttendanceError):
    """Concurrent mutation lost the race; the caller may re-issue the action."""

    kind = "Conflict"
    status_code = 409
    retryable = True
