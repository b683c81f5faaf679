class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"
    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"
    http_status = 400


class AuthenticationError(DomainError):
    """Raised when the request carries no authenticated actor."""

    code = "AUTHENTICATION_REQUIRED"
    http_status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "NOT_AUTHORIZED"
    http_status = 403


class NotFoundError(DomainError):
    """Raised when a referenced course, session or record does not exist."""

    code = "NOT_FOUND"
    http_status = 404


class ConflictError(DomainError):
    """Raised when the request clashes with the current state of the data."""

    code = "CONFLICT"
    http_status = 409


class WindowClosedError(DomainError):
    """Raised when attendance is marked outside every eligible class session."""

    code = "WINDOW_CLOSED"
    http_status = 403


class InvalidTimeRangeError(ValidationError):
    code = "INVALID_TIME_RANGE"


class InvalidDateError(ValidationError):
    code = "INVALID_DATE"


class EmptyRecordSetError(ValidationError):
    code = "EMPTY_RECORD_SET"


class CourseNotFoundError(NotFoundError):
    code = "COURSE_NOT_FOUND"


class SessionNotFoundError(NotFoundError):
    code = "SESSION_NOT_FOUND"


class AttendanceNotFoundError(NotFoundError):
    code = "ATTENDANCE_NOT_FOUND"


class InvalidStateForRescheduleError(ConflictError):
    code = "INVALID_STATE_FOR_RESCHEDULE"


class DuplicateRecordError(ConflictError):
    code = "DUPLICATE_RECORD"
