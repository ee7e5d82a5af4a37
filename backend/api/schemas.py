"""Pydantic models for the chat relay wire format.

Defines the request/response envelopes shared by the relay endpoint and the
relay client. Field names on the wire are camelCase (`conversationHistory`).
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from backend.core.errors import MissingMessage, ValidationError


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2026-01-01T00:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ChatMessage(BaseModel):
    """Single prior turn supplied by the caller."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Incoming chat message plus optional client-supplied history."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, description="User message")
    conversation_history: list[ChatMessage] = Field(
        default_factory=list, alias="conversationHistory"
    )


class ChatResponse(BaseModel):
    """Success envelope."""
    response: str
    success: Literal[True] = True
    timestamp: str = Field(default_factory=utc_timestamp)


class ChatErrorResponse(BaseModel):
    """Failure envelope. Returned with HTTP 500 for every error kind."""
    error: str
    success: Literal[False] = False
    timestamp: str = Field(default_factory=utc_timestamp)


def parse_chat_request(payload: Any) -> ChatRequest:
    """Validate a decoded JSON body against the ChatRequest schema.

    Args:
        payload: Decoded JSON body (anything `json.loads` can return).

    Returns:
        Validated ChatRequest.

    Raises:
        MissingMessage: If `message` is absent, null or empty.
        ValidationError: For any other shape mismatch.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    # absent, null, "", 0, false, [] and {} all count as no message
    if not payload.get("message"):
        raise MissingMessage("Message is required")

    try:
        return ChatRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid chat request: {_summarize(e)}")


def _summarize(error: PydanticValidationError) -> str:
    """Compact one-line description of pydantic errors: `loc: msg; loc: msg`."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "body"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
