"""Message relay between the browser chat UI and the vendor LLM API.

Responsibilities:
    - Per-client fixed-window rate limiting
    - Inbound message list validation
    - Outbound vendor calls, single-shot or streaming
    - Re-emission of the vendor event stream as a simplified event stream

Kept free of HTTP framework concerns; the api package wires it to FastAPI.
"""

from coach_relay.relay.config import RelayConfig, get_relay_config
from coach_relay.relay.errors import (
    ConfigError,
    MessageValidationError,
    RateLimitError,
    RelayError,
    StreamDecodeError,
    TransportError,
    VendorError,
)
from coach_relay.relay.normalizer import merge_consecutive_roles, normalize_messages
from coach_relay.relay.rate_limiter import (
    RateLimiter,
    RateLimitResult,
    get_rate_limiter,
    resolve_client_id,
)
from coach_relay.relay.stream import SSEDecoder, encode_event, reemit
from coach_relay.relay.vendor import VendorRelay, VendorResult, get_vendor_relay

__all__ = [
    "ConfigError",
    "MessageValidationError",
    "RateLimitError",
    "RateLimitResult",
    "RateLimiter",
    "RelayConfig",
    "RelayError",
    "SSEDecoder",
    "StreamDecodeError",
    "TransportError",
    "VendorError",
    "VendorRelay",
    "VendorResult",
    "encode_event",
    "get_rate_limiter",
    "get_relay_config",
    "get_vendor_relay",
    "merge_consecutive_roles",
    "normalize_messages",
    "reemit",
    "resolve_client_id",
]
