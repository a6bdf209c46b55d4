"""Vendor relay for the Anthropic Messages API.

Sends the normalized conversation to the vendor and hands back either the
complete reply text or a live stream of caller events.

Failure handling:

1. **Vendor errors** - non-2xx statuses are forwarded unchanged together with
   the vendor's own error message when its body can be parsed.

2. **Transport errors** - connection failures and timeouts are logged and
   reported as a generic 500 so no internals leak to the browser.

3. **Empty replies** - a successful response without text is answered with a
   canned apology instead of an error.

4. **Streaming** - the upstream response is left open and consumed chunk by
   chunk; it is closed whenever the caller-facing stream ends, including when
   the browser disconnects and the generator is cancelled.
"""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

import httpx

from coach_relay.models.schemas import ChatMessage, StreamEvent
from coach_relay.relay.config import RelayConfig, get_relay_config
from coach_relay.relay.errors import TransportError, VendorError
from coach_relay.relay.stream import reemit

logger = logging.getLogger(__name__)

FAILED_RESPONSE = "Failed to get response"
VENDOR_ERROR_FALLBACK = "Failed to get response."
EMPTY_REPLY_FALLBACK = "I'm having trouble responding. Please try again."


@dataclass
class VendorResult:
    """Outcome of a successful vendor call.

    Exactly one of the attributes is set.

    Attributes:
        message: Complete reply text for non-streaming calls.
        events: Caller events for streaming calls. Iterating it to the end
            (or closing it) releases the upstream connection.
    """

    message: str | None = None
    events: AsyncIterator[StreamEvent] | None = None

    @property
    def is_stream(self) -> bool:
        return self.events is not None


def extract_error_message(response: httpx.Response) -> str:
    """Best-effort human-readable message from a vendor error body."""
    try:
        body = response.json()
    except ValueError:
        return VENDOR_ERROR_FALLBACK

    error = body.get("error") if isinstance(body, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    if isinstance(message, str) and message:
        return message
    return VENDOR_ERROR_FALLBACK


def extract_reply_text(body: Any) -> str:
    """Text of the first content block, or the fallback apology."""
    content = body.get("content") if isinstance(body, dict) else None
    if isinstance(content, list) and content:
        first = content[0]
        text = first.get("text") if isinstance(first, dict) else None
        if isinstance(text, str) and text:
            return text
    return EMPTY_REPLY_FALLBACK


class VendorRelay:
    """Client for the vendor's message-completion endpoint.

    Wraps a shared httpx.AsyncClient with:
    - Fixed model, token bound and system prompt from RelayConfig
    - Vendor error and transport failure mapping to RelayError subclasses
    - Streaming hand-off to the stream re-emitter
    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            config: Optional relay configuration.
                    Loads from environment if not provided.
            client: Optional preconfigured client. The relay does not close
                    a client it did not create.
            transport: Optional transport for the client the relay creates.
        """
        self._config = config or get_relay_config()
        self._client = client
        self._transport = transport
        self._owns_client = client is None

    @property
    def config(self) -> RelayConfig:
        return self._config

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.request_timeout),
                transport=self._transport,
            )
        return self._client

    def build_payload(self, messages: list[ChatMessage], stream: bool) -> dict[str, Any]:
        """Build the JSON body for the vendor request."""
        return {
            "model": self._config.model_name,
            "max_tokens": self._config.max_tokens,
            "system": self._config.system_prompt,
            "messages": [message.to_vendor() for message in messages],
            "stream": stream,
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._config.api_key,
            "anthropic-version": self._config.api_version,
        }

    async def send(self, messages: list[ChatMessage], stream: bool = False) -> VendorResult:
        """Send a conversation to the vendor.

        Args:
            messages: Normalized conversation, oldest first.
            stream: Ask the vendor for a server-sent event stream.

        Returns:
            VendorResult holding the reply text or the event stream.

        Raises:
            VendorError: The vendor answered with an error.
            TransportError: The vendor could not be reached or timed out.
        """
        client = self._get_client()
        request = client.build_request(
            "POST",
            self._config.messages_url,
            json=self.build_payload(messages, stream),
            headers=self.build_headers(),
        )

        try:
            response = await client.send(request, stream=stream)
        except httpx.HTTPError as e:
            logger.error(f"Vendor request failed: {type(e).__name__}: {e}")
            raise TransportError(FAILED_RESPONSE) from e

        if response.is_error:
            await self._raise_vendor_error(response)

        if stream:
            return VendorResult(events=self._relay_stream(response))

        return VendorResult(message=self._read_reply(response))

    async def _raise_vendor_error(self, response: httpx.Response) -> None:
        try:
            await response.aread()
            message = extract_error_message(response)
        except httpx.HTTPError:
            message = VENDOR_ERROR_FALLBACK
        finally:
            await response.aclose()

        logger.warning(f"Vendor returned {response.status_code}: {message}")
        raise VendorError(message, status_code=response.status_code)

    def _read_reply(self, response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Vendor returned a non-JSON body: {e}")
            raise VendorError(FAILED_RESPONSE, status_code=502) from e

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            logger.warning(f"Vendor reported an error in a success response: {message}")
            raise VendorError(message or VENDOR_ERROR_FALLBACK, status_code=400)

        return extract_reply_text(body)

    async def _relay_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        """Yield caller events from an open vendor stream, then close it."""
        try:
            async for event in reemit(response.aiter_bytes()):
                yield event
            logger.debug("Vendor stream completed")
        except httpx.HTTPError as e:
            logger.error(f"Vendor stream interrupted: {type(e).__name__}: {e}")
            yield StreamEvent.error(FAILED_RESPONSE)
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this relay created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


# Module-level singleton instance
_vendor_relay: VendorRelay | None = None


def get_vendor_relay() -> VendorRelay:
    """Get or create the global vendor relay.

    One relay per process so the connection pool is shared across requests.

    Returns:
        The VendorRelay instance.
    """
    global _vendor_relay
    if _vendor_relay is None:
        _vendor_relay = VendorRelay()
    return _vendor_relay


async def close_vendor_relay() -> None:
    """Close and forget the global vendor relay."""
    global _vendor_relay
    if _vendor_relay is not None:
        await _vendor_relay.aclose()
        _vendor_relay = None
