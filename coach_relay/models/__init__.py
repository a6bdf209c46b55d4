"""Pydantic models for the chat relay's requests, replies and stream records.

Provides type safety and shape checking for the JSON exchanged with the
browser UI.

Models:
    - ChatMessage: Individual message in the conversation
    - StreamEvent: One record of the re-emitted event stream
    - ChatReply: Non-streaming success payload
    - ErrorResponse: Failure payload
"""

from coach_relay.models.schemas import (
    ChatMessage,
    ChatReply,
    ChatRole,
    ErrorResponse,
    StreamEvent,
    StreamEventType,
)

__all__ = [
    "ChatMessage",
    "ChatReply",
    "ChatRole",
    "ErrorResponse",
    "StreamEvent",
    "StreamEventType",
]
