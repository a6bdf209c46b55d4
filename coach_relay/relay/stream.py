"""Server-sent event decoding and re-emission.

The vendor streams verbose SSE records (message_start, content_block_delta,
ping, message_stop, ...). The browser only needs the text deltas, any error,
and a terminal marker, so the vendor stream is decoded line by line and
re-encoded as a much smaller event stream.
"""

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator

from coach_relay.models.schemas import StreamEvent
from coach_relay.relay.errors import StreamDecodeError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_TOKEN = "[DONE]"
STREAM_ERROR_FALLBACK = "Streaming error."

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    # Stop nginx-style proxies from buffering the stream
    "X-Accel-Buffering": "no",
}


def parse_event_line(line: str) -> StreamEvent | None:
    """Translate one complete vendor SSE line into a caller event.

    Args:
        line: A single line without its newline.

    Returns:
        The event to emit, or None when the line carries nothing for the
        caller (comments, ``event:`` lines, pings, the done token, ...).

    Raises:
        StreamDecodeError: If a data line does not hold valid JSON.
    """
    trimmed = line.strip()
    if not trimmed.startswith(DATA_PREFIX):
        return None

    data = trimmed[len(DATA_PREFIX):].lstrip()
    if not data or data == DONE_TOKEN:
        return None

    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise StreamDecodeError(f"Malformed event payload: {e}") from e

    if not isinstance(payload, dict):
        return None

    event_type = payload.get("type")

    if event_type == "content_block_delta":
        delta = payload.get("delta")
        text = delta.get("text") if isinstance(delta, dict) else None
        if isinstance(text, str) and text:
            return StreamEvent.delta(text)
        return None

    if event_type == "error":
        error = payload.get("error")
        message = error.get("message") if isinstance(error, dict) else None
        return StreamEvent.error(message or STREAM_ERROR_FALLBACK)

    return None


class SSEDecoder:
    """Incremental decoder for a chunked vendor event stream.

    Bytes may split anywhere, including inside a UTF-8 sequence or a line,
    so undecoded bytes and the trailing partial line are carried over to
    the next ``feed`` call.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Consume one chunk and return the events it completes, in order."""
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        events: list[StreamEvent] = []
        for line in lines:
            try:
                event = parse_event_line(line)
            except StreamDecodeError as e:
                logger.debug(f"Skipping malformed stream line: {e}")
                continue
            if event is not None:
                events.append(event)
        return events


def encode_event(event: StreamEvent) -> bytes:
    """Frame an event as a single SSE record."""
    return f"data: {event.model_dump_json(exclude_none=True)}\n\n".encode()


async def reemit(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """Re-emit vendor stream chunks as caller events, ending with ``done``.

    Events are yielded as soon as the chunk that completes them arrives.
    """
    decoder = SSEDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    yield StreamEvent.done()


async def encode_stream(events: AsyncIterable[StreamEvent]) -> AsyncIterator[bytes]:
    """Frame every event of ``events`` for the response body.

    Closing this generator also closes ``events``, so an abandoned response
    still releases whatever the events are read from.
    """
    try:
        async for event in events:
            yield encode_event(event)
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()


async def single_event_stream(event: StreamEvent) -> AsyncIterator[bytes]:
    """A complete response body holding just ``event``."""
    yield encode_event(event)
