"""Errors raised by the booking services.

Each error carries the HTTP status it is rendered with by the API layer so
callers get the detail verbatim (e.g. refresh the slot list on a conflict).
"""

from fastapi import status


class BookingError(Exception):
    """Base class for every error the booking core surfaces to callers."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(BookingError):
    """Malformed or missing input, or a slot outside working hours."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(BookingError):
    """The actor may not perform the requested mutation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BookingError):
    """The slot is already reserved."""

    status_code = status.HTTP_409_CONFLICT


class InvalidStateError(BookingError):
    """A transition was attempted from a state that does not allow it."""

    status_code = status.HTTP_409_CONFLICT


class ExternalServiceError(BookingError):
    """The payment processor was unreachable or answered unexpectedly. Retryable."""

    status_code = status.HTTP_502_BAD_GATEWAY
