"""Error taxonomy for the clinic client.

Every API-layer failure is raised as one of these and caught at the call
site that initiated the user action. Poll failures are caught by the
poller itself and only logged.
"""
from typing import Optional


class MediCoreError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(MediCoreError):
    """Raised on bad credentials or an expired/invalid bearer token (401)."""
    pass


class AuthorizationError(MediCoreError):
    """Raised when the server refuses the action for this role (403)."""
    pass


class TransientNetworkError(MediCoreError):
    """Raised on connection errors, timeouts and 5xx responses."""
    pass


class ApiError(MediCoreError):
    """Raised on any other non-2xx response; message comes from the server."""
    pass


class ValidationError(MediCoreError):
    """Raised when a client-side check fails before any request is sent."""
    pass


class PaymentError(MediCoreError):
    """Raised when a completed checkout could not be verified with the server."""
    pass


def user_message(exc: Exception, fallback: str) -> str:
    """
    Pick the text shown to the user for a failed action.

    Server-provided messages (and client-side validation messages) win;
    everything else falls back to the generic string.

    Args:
        exc: The caught exception
        fallback: Generic message for this action

    Returns:
        Message suitable for a notification or inline form error
    """
    if isinstance(exc, (ApiError, AuthenticationError, AuthorizationError, ValidationError, PaymentError)):
        if exc.message:
            return exc.message
    return fallback
