"""Custom exceptions for the arc-poe HTTP client."""

from __future__ import annotations

# HTTP status the ArubaOS-Switch REST API returns for an expired or unknown
# session cookie.  The same status also covers genuine bad requests, so it is
# only interpreted as expiry on the session probe.
STATUS_SESSION_EXPIRED: int = 400


class ArcError(Exception):
    """Base exception for all arc-poe errors."""


class ArcConfigError(ArcError):
    """Raised for a malformed base URL or an unusable persisted-state file."""


class ArcAuthError(ArcError):
    """Raised when authentication with the switch fails."""


class ArcUnexpectedError(ArcError):
    """Raised when the session probe fails for a reason other than expiry."""


class ArcTransportError(ArcError):
    """Base class for failed HTTP exchanges with the switch."""


class ArcRequestError(ArcTransportError):
    """Raised when a network-level error occurs (connection refused, timeout, etc.)."""

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url!r} failed: {cause}")


class ArcResponseError(ArcTransportError):
    """Raised when the switch returns a non-2xx HTTP status code."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code} for {url!r}")


class ArcSessionExpired(ArcResponseError):
    """A :class:`ArcResponseError` carrying the session-expired status (400)."""

    def __init__(self, url: str) -> None:
        super().__init__(STATUS_SESSION_EXPIRED, url)


class ArcParseError(ArcTransportError):
    """Raised when a response body is not the JSON document the API promises."""


class ArcCoordinationError(ArcError):
    """Raised when a bulk worker terminates abnormally instead of returning.

    Attributes:
        port_id: Port the worker was updating.
        cause: The exception (or ``None`` for a cancelled worker).
    """

    def __init__(self, port_id: str, cause: BaseException | None) -> None:
        self.port_id = port_id
        self.cause = cause
        reason = "cancelled" if cause is None else f"{type(cause).__name__}: {cause}"
        super().__init__(f"Worker for port {port_id!r} failed to complete: {reason}")
