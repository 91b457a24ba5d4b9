"""Domain errors raised by the services and rendered by the API."""


class ReportingError(Exception):
    """Base class; ``status_code`` is the HTTP status the API responds with."""

    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, **self.extra}


class ValidationError(ReportingError):
    status_code = 400


class InvalidRating(ValidationError):
    pass


class NotEligible(ReportingError):
    status_code = 400


class InvalidCredentials(ReportingError):
    status_code = 401


class Unauthorized(ReportingError):
    """The caller's role may not perform the requested operation."""

    status_code = 403


class NotFound(ReportingError):
    status_code = 404


class Conflict(ReportingError):
    status_code = 409
