"""
Error taxonomy shared by the REST client, the live backend and the screens.

Every error carries a ``user_message`` that is safe to show in a toast; raw
exception text never reaches the user.
"""

from typing import Optional

NETWORK_MESSAGE = "Please check your network connection and try again."
SERVER_MESSAGE = "Something went wrong. Please try again later."
CLIENT_MESSAGE = "Unable to process your request."
AUTH_MESSAGE = "Your session has expired. Please log in again."
LOGIN_MESSAGE = "Invalid email or password."
NOT_FOUND_MESSAGE = "The requested item could not be found."
VALIDATION_MESSAGE = "Please check your input and try again."


class AppError(Exception):
    """Base class, also used for client errors without a dedicated type."""

    default_message = CLIENT_MESSAGE

    def __init__(self, user_message: Optional[str] = None, status: Optional[int] = None):
        self.user_message = user_message or self.default_message
        self.status = status
        super().__init__(self.user_message)


class AuthError(AppError):
    """Bad credentials or an expired/invalid token (HTTP 401)."""

    default_message = AUTH_MESSAGE


class ValidationError(AppError):
    """Malformed input, raised before submission or on HTTP 422."""

    default_message = VALIDATION_MESSAGE

    def __init__(self, user_message: Optional[str] = None, status: Optional[int] = None, field: Optional[str] = None):
        super().__init__(user_message, status)
        self.field = field


class NetworkError(AppError):
    """No response at all: connection refused, DNS failure, timeout."""

    default_message = NETWORK_MESSAGE


class ServerError(AppError):
    default_message = SERVER_MESSAGE


class NotFoundError(AppError):
    default_message = NOT_FOUND_MESSAGE


def user_message(exc: BaseException) -> str:
    if isinstance(exc, AppError):
        return exc.user_message
    return SERVER_MESSAGE
