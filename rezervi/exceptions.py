# rezervi/exceptions.py

"""
Error taxonomy for the booking core.

Each error carries the HTTP status it is rendered with by the app-level
exception handler in rezervi/main.py.
"""


class RezerviError(Exception):
    """Base class for all application-level errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RezerviError):
    """Raised when required fields are missing or malformed."""

    status_code = 400


class NotFoundError(RezerviError):
    """Raised when a business or reservation does not exist."""

    status_code = 404


class SlotUnavailableError(RezerviError):
    """Raised when a slot is already at capacity at booking time."""

    status_code = 409


class ConflictError(RezerviError):
    """Raised for invalid reservation state transitions."""

    status_code = 409


class PermissionDenied(RezerviError):
    status_code = 403


class PersistenceError(RezerviError):
    """Raised when the store is unreachable or rejects a write."""

    status_code = 500
