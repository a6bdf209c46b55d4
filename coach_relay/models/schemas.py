from enum import Enum

from pydantic import BaseModel, Field, StrictStr


class ChatRole(str, Enum):
    """Speaker roles accepted by the vendor messages endpoint."""

    USER = "user"
    ASSISTANT = "assistant"


class StreamEventType(str, Enum):
    """Record types written to the caller-facing event stream."""

    DELTA = "delta"
    ERROR = "error"
    DONE = "done"


class ChatMessage(BaseModel):
    """A single turn of the conversation.

    Attributes:
        role: Who spoke (user or assistant).
        content: The message text. Must be a non-empty string; other JSON
            types are rejected rather than coerced.
    """

    role: ChatRole
    content: StrictStr = Field(..., min_length=1)

    def to_vendor(self) -> dict[str, str]:
        """Return the plain dict shape the vendor expects."""
        return {"role": self.role.value, "content": self.content}


class StreamEvent(BaseModel):
    """A record of the simplified event stream sent back to the browser.

    Attributes:
        type: delta, error or done.
        text: Text fragment for delta records.
        message: Human-readable message for error records.
    """

    type: StreamEventType
    text: str | None = None
    message: str | None = None

    @classmethod
    def delta(cls, text: str) -> "StreamEvent":
        return cls(type=StreamEventType.DELTA, text=text)

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(type=StreamEventType.ERROR, message=message)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(type=StreamEventType.DONE)


class ChatReply(BaseModel):
    """Successful non-streaming reply.

    Attributes:
        message: The assistant's reply text.
    """

    message: str


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    error: str
