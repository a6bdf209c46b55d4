"""Error types raised by the relay.

Every error that can reach the caller derives from RelayError and carries the
HTTP status and the short, user-safe message to send back. The API layer
renders them as ``{"error": message}``.
"""


class RelayError(Exception):
    """Base class for failures reported to the caller."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers or {}


class MessageValidationError(RelayError):
    """Raised when the inbound body holds no usable messages."""

    status_code = 400


class RateLimitError(RelayError):
    """Raised when a client exceeded its request quota for the current window."""

    status_code = 429

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            f"Rate limit exceeded. Try again in {retry_after}s.",
            headers={"Retry-After": str(retry_after)},
        )
        self.retry_after = retry_after


class VendorError(RelayError):
    """Raised when the vendor answered with an error.

    The status code is the vendor's own unless the failure was detected in
    an otherwise successful response.
    """

    status_code = 502


class TransportError(RelayError):
    """Raised when the vendor could not be reached or timed out."""

    status_code = 500


class ConfigError(RelayError):
    """Raised when the relay is missing required configuration."""

    status_code = 500


class StreamDecodeError(Exception):
    """Raised for a malformed vendor event line. Never reaches the caller."""
