"""Application errors raised by the services.

Route handlers let them bubble up to the app exception handler, the live
channel turns them into `error` events on the same connection.
"""

from fastapi import status


class AppError(Exception):
    """Base exception class for application errors"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(AppError):
    """Duplicate username, friendship, request, block or hidden chat"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"
