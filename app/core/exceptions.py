# app/core/exceptions.py
"""
Error taxonomy for the attendance service.

Every admission or lifecycle failure is raised as exactly one of these and
rendered by the handler in app.main with its fixed HTTP status.
"""

from typing import Optional


class AttendanceServiceError(Exception):
    """Base exception for all attendance service errors."""

    status_code = 500
    error_code = "ATTENDANCE_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(AttendanceServiceError):
    status_code = 400
    error_code = "INVALID_INPUT"


class UnauthorizedError(AttendanceServiceError):
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(AttendanceServiceError):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class SessionNotFoundError(AttendanceServiceError):
    status_code = 404
    error_code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            "Invalid Session ID. This session does not exist.",
            details={"session_id": session_id},
        )


class SessionClosedError(AttendanceServiceError):
    """Session is not accepting check-ins, either closed by its owner or expired."""

    status_code = 403
    error_code = "SESSION_CLOSED"

    def __init__(self, session_id: str, expired: bool = False):
        self.session_id = session_id
        self.expired = expired
        if expired:
            message = "QR code expired. Please scan a new code."
        else:
            message = "This session has been closed by the instructor."
        super().__init__(message, details={"session_id": session_id, "expired": expired})


class DuplicateStudentError(AttendanceServiceError):
    status_code = 409
    error_code = "DUPLICATE_STUDENT"

    def __init__(self, session_id: str, student_id: str):
        super().__init__(
            "Attendance already marked for this Student ID.",
            details={"session_id": session_id, "student_id": student_id},
        )


class DuplicateOriginError(AttendanceServiceError):
    status_code = 429
    error_code = "DUPLICATE_ORIGIN"

    def __init__(self, session_id: str):
        super().__init__(
            "You have already marked your attendance.",
            details={"session_id": session_id},
        )


class RateLimitedError(AttendanceServiceError):
    status_code = 429
    error_code = "RATE_LIMITED"

    def __init__(self, limit: str = ""):
        super().__init__(
            "Too many attendance requests from this IP, please try again later.",
            details={"limit": limit} if limit else None,
        )


class EmailAlreadyRegisteredError(AttendanceServiceError):
    status_code = 409
    error_code = "EMAIL_TAKEN"

    def __init__(self, email: str):
        super().__init__("Email already registered", details={"email": email})


class StoreFailureError(AttendanceServiceError):
    """Unexpected persistence failure; the only kind treated as fatal to the request."""

    status_code = 500
    error_code = "STORE_FAILURE"

    def __init__(self, message: str = "Server error while processing attendance."):
        super().__init__(message)
