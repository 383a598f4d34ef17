from __future__ import annotations

from typing import Optional


class FortilogError(Exception):
    """Base class for every error raised by fortilog."""

    default_message = "Unknown error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(FortilogError):
    default_message = "Authentication failed: No access token received"


class TransportError(FortilogError):
    """A classified transport/HTTP failure, suitable for display."""


class AuthorizationExpired(TransportError):
    default_message = "Invalid credentials or session expired"
    status_code = 401


class PermissionDenied(TransportError):
    default_message = "Access forbidden - check your permissions"
    status_code = 403


class EndpointNotFound(TransportError):
    default_message = "API endpoint not found - check your Fortigate version"
    status_code = 404


class ServerError(TransportError):
    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        self.status_code = int(status_code)
        if message is None:
            if self.status_code == 500:
                message = "Fortigate internal server error"
            else:
                message = f"Server error: {self.status_code}"
        super().__init__(message)


class ConnectionRefused(TransportError):
    default_message = "Connection refused - check if the device is reachable"


class RequestTimeout(TransportError):
    default_message = "Connection timed out - check your network or device status"


class UnknownTransportError(TransportError):
    pass


class LogFetchError(FortilogError):
    """Raised once the retry budget is spent; wraps the last attempt's error."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        detail = cause.message if isinstance(cause, FortilogError) else (str(cause) or type(cause).__name__)
        super().__init__(f"Failed to fetch logs: {detail}")


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, FortilogError):
        return exc.message
    return str(exc) or "Unknown error"
