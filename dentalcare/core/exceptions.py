from typing import Optional
from fastapi import status


class AppointmentError(Exception):
    """Base for every failure a service reports to its caller.

    ``message`` is what the client sees. ``public_message`` and
    ``public_status_code`` let an error keep its precise kind internally
    while presenting as another kind at the response boundary.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(
        self,
        message: Optional[str] = None,
        public_message: Optional[str] = None,
        public_status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        self.public_message = public_message or self.message
        self.public_status_code = public_status_code or self.status_code
        super().__init__(self.message)


class Unauthenticated(AppointmentError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "User not logged in"


class ValidationError(AppointmentError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason)


class ConflictError(AppointmentError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Selected time slot is not available"


class NotFound(AppointmentError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Appointment not found"


class Forbidden(AppointmentError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized"


class AlreadyInState(AppointmentError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Appointment already cancelled"


class UpdateFailed(AppointmentError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Failed to update appointment status"


class StoreError(AppointmentError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database error occurred"


class RateLimited(AppointmentError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."
