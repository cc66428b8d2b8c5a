# Overview: Typed service-layer errors; the HTTP mapping lives in the app factory.

"""
Service Error Taxonomy

Every public service operation surfaces exactly one of these. Routes never
build error responses for them by hand: the app-level error handler rolls
back the session and renders {"error": message} with `status_code`.

- UnauthenticatedError: no principal
- ForbiddenError: principal present, policy or role check denies
- NotFoundError: resource absent, or a vouch addressed to someone else
- BadRequestError: illegal operation for the current state or input
"""


class ServiceError(Exception):
    """Base class for domain errors raised by services."""

    status_code = 500

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    default_message = "Service error"

    def to_dict(self) -> dict:
        return {"error": self.message}


class UnauthenticatedError(ServiceError):
    """Raised when an operation is attempted without a principal."""
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(ServiceError):
    """Raised when the principal is known but not allowed."""
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ServiceError):
    """Raised when a resource is absent or not visible to the principal."""
    status_code = 404
    default_message = "Not found"


class BadRequestError(ServiceError):
    """Raised when an operation is illegal given current state or input."""
    status_code = 400
    default_message = "Bad request"
