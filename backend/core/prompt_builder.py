"""Context-window policy and prompt rendering for the generation API."""

from collections.abc import Sequence

from backend.api.schemas import ChatMessage

HISTORY_LIMIT = 10
HISTORY_HEADER = "Previous conversation:"


def truncate_history(history: Sequence[ChatMessage], limit: int = HISTORY_LIMIT) -> list[ChatMessage]:
    """Keep only the last `limit` turns, oldest dropped first."""
    if limit <= 0:
        return []
    return list(history[-limit:])


def build_prompt(message: str, history: Sequence[ChatMessage] = (), limit: int = HISTORY_LIMIT) -> str:
    """Render the single text prompt sent upstream.

    With no history the prompt is the message verbatim. Otherwise:

        Previous conversation:
        user: Hi
        assistant: Hello!

        User: How are you?

    Args:
        message: Current user message.
        history: Prior turns, oldest first.
        limit: Max turns to include.

    Returns:
        Prompt string.
    """
    recent = truncate_history(history, limit)
    if not recent:
        return message

    context = "\n".join(f"{msg.role}: {msg.content}" for msg in recent)
    return f"{HISTORY_HEADER}\n{context}\n\nUser: {message}"
