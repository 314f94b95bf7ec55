from enum import Enum

from fastapi import status


class AuthFailure(str, Enum):
    MISSING_OR_MALFORMED = "missing_or_malformed"
    INVALID_TOKEN = "invalid_token"


class ValidationFailure(str, Enum):
    MISSING_TITLE = "missing_title"
    INVALID_ENUM = "invalid_enum"
    OWNER_MISMATCH = "owner_mismatch"
    NO_FIELDS = "no_fields"
    INVALID_PAYLOAD = "invalid_payload"


class TaskApiError(Exception):
    """Base error rendered as a plain-text HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(TaskApiError):
    """Raised when the bearer credential is missing, malformed or invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, reason: AuthFailure, message: str = None):
        self.reason = reason
        if message is None:
            message = (
                "Missing or invalid Authorization header."
                if reason is AuthFailure.MISSING_OR_MALFORMED
                else "Invalid token."
            )
        super().__init__(message)


class ValidationError(TaskApiError):
    """Raised when a payload or query parameter is rejected."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: ValidationFailure, message: str):
        self.reason = reason
        super().__init__(message)


class NotFoundError(TaskApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Task not found."


class ForbiddenError(TaskApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to access this task."


class InternalError(TaskApiError):
    """Raised when the store fails for a reason other than a missing record."""
