"""Inbound message list validation.

Reshapes whatever the browser posted into the list of messages the vendor
expects. Malformed entries are dropped silently; the only failure is ending
up with nothing to send.
"""

import logging
from typing import Any

from pydantic import ValidationError

from coach_relay.models.schemas import ChatMessage
from coach_relay.relay.errors import MessageValidationError

logger = logging.getLogger(__name__)

MESSAGES_REQUIRED = "Messages are required."


def normalize_messages(body: Any) -> list[ChatMessage]:
    """Extract the well-formed messages from a request body.

    Args:
        body: Decoded JSON request body. Anything other than an object with
            a ``messages`` list is treated as carrying no messages.

    Returns:
        Messages in their original order, each with a user/assistant role
        and non-empty string content.

    Raises:
        MessageValidationError: If no well-formed message remains.
    """
    raw = body.get("messages") if isinstance(body, dict) else None
    if not isinstance(raw, list):
        raw = []

    messages: list[ChatMessage] = []
    for item in raw:
        if isinstance(item, ChatMessage):
            messages.append(item)
            continue
        try:
            messages.append(ChatMessage.model_validate(item))
        except ValidationError:
            continue

    dropped = len(raw) - len(messages)
    if dropped:
        logger.debug(f"Dropped {dropped} malformed message(s)")

    if not messages:
        raise MessageValidationError(MESSAGES_REQUIRED)

    return messages


def merge_consecutive_roles(messages: list[ChatMessage]) -> list[ChatMessage]:
    """Join adjacent messages that share a role.

    The vendor requires turns to alternate; a client that drops failed
    replies from its history can end up sending two user turns in a row.
    Contents are joined with a blank line.
    """
    merged: list[ChatMessage] = []
    for message in messages:
        if merged and merged[-1].role == message.role:
            previous = merged[-1]
            merged[-1] = ChatMessage(
                role=previous.role,
                content=f"{previous.content}\n\n{message.content}",
            )
        else:
            merged.append(message)
    return merged
