"""Exception hierarchy for freshrss-sync."""


class FreshRSSError(Exception):
    """Base class for every error raised by this library."""


class ConfigurationError(FreshRSSError):
    """Raised when required settings are missing or invalid."""


class ValidationError(ConfigurationError, ValueError):
    """Raised when a call argument is rejected before any request is made."""


class UnsupportedOperationError(FreshRSSError):
    """Raised when the selected protocol cannot perform the requested operation."""


class APIError(FreshRSSError):
    """Raised when the server answers with a well-formed but invalid response."""


class AuthenticationError(APIError):
    """Raised when the server rejects the credentials or the session."""


class ConsistencyError(FreshRSSError):
    """Raised when an invariant the client guarantees itself is violated."""


class TransportError(FreshRSSError):
    """Raised when a request cannot be completed at the network level."""


class HTTPStatusError(TransportError):
    """Raised when the server answers with an HTTP error status."""

    def __init__(self, status: int, reason: str, body: str = ""):
        self.status = status
        self.reason = reason
        self.body = body
        message = f"HTTP {status} {reason}"
        if body:
            message += f": {body}"
        super().__init__(message)


class HTTPAuthError(HTTPStatusError, AuthenticationError):
    """HTTP 401/403: the transport failed because the session was refused."""


class DecodeError(TransportError):
    """Raised when a response body cannot be decoded as announced."""
