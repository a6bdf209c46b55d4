"""Chat relay endpoint.

Accepts the browser's conversation, applies rate limiting and validation,
and answers with the vendor reply as JSON or as a server-sent event stream.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from coach_relay.models.schemas import ChatReply, ErrorResponse, StreamEvent
from coach_relay.relay.config import RelayConfig, get_relay_config
from coach_relay.relay.errors import ConfigError, RateLimitError, TransportError
from coach_relay.relay.normalizer import merge_consecutive_roles, normalize_messages
from coach_relay.relay.rate_limiter import RateLimiter, get_rate_limiter, resolve_client_id
from coach_relay.relay.stream import (
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    encode_stream,
    single_event_stream,
)
from coach_relay.relay.vendor import VendorRelay, get_vendor_relay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

_TRUE_QUERY_VALUES = {"1", "true"}


async def _read_json_body(request: Request) -> Any:
    """Decode the request body, treating anything unreadable as empty."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.debug("Request body is not valid JSON")
        return None


def wants_stream(request: Request, body: Any) -> bool:
    """Whether the caller asked for an event stream.

    Any one of the query flag, the body flag or the Accept header is enough.
    """
    if request.query_params.get("stream") in _TRUE_QUERY_VALUES:
        return True
    if isinstance(body, dict) and body.get("stream") is True:
        return True
    return SSE_MEDIA_TYPE in request.headers.get("accept", "")


def _sse_response(body: Any) -> StreamingResponse:
    return StreamingResponse(body, media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)


@router.post(
    "/chat",
    response_model=ChatReply,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def chat(
    request: Request,
    config: RelayConfig = Depends(get_relay_config),
    limiter: RateLimiter = Depends(get_rate_limiter),
    relay: VendorRelay = Depends(get_vendor_relay),
) -> ChatReply | StreamingResponse:
    """Relay a conversation to the vendor.

    Body: ``{"messages": [{"role", "content"}, ...], "stream": bool}``.
    Streaming is also selected with ``?stream=1|true`` or
    ``Accept: text/event-stream``.

    Returns:
        ChatReply with the assistant's message, or a text/event-stream of
        ``delta``/``error``/``done`` records.

    Raises:
        400: No usable messages.
        429: Client exceeded its request quota.
        500: Missing API key or vendor unreachable.
        502: Vendor sent an unreadable reply.
        Vendor status: Vendor rejected the request.
    """
    if not config.has_api_key:
        logger.error("ANTHROPIC_API_KEY is not configured")
        raise ConfigError("Missing ANTHROPIC_API_KEY")

    body = await _read_json_body(request)
    stream_requested = wants_stream(request, body)

    client_id = resolve_client_id(
        request.headers.getlist("x-forwarded-for"),
        request.client.host if request.client else None,
    )
    rate = limiter.check(client_id)
    if rate.limited:
        raise RateLimitError(rate.retry_after)

    messages = normalize_messages(body)
    if config.merge_consecutive_roles:
        messages = merge_consecutive_roles(messages)

    try:
        result = await relay.send(messages, stream=stream_requested)
    except TransportError as e:
        if not stream_requested:
            raise
        return _sse_response(single_event_stream(StreamEvent.error(e.message)))

    if result.is_stream:
        return _sse_response(encode_stream(result.events))

    return ChatReply(message=result.message)
