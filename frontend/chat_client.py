"""Relay client: the single call UI code makes to talk to the chat relay.

Hides transport details behind `ChatClient.send_message(message, history)`.
"""

from collections.abc import Mapping, Sequence

import requests
import structlog
from pydantic import ValidationError as PydanticValidationError

from backend.api.schemas import ChatMessage, ChatResponse, parse_chat_request
from backend.core.config import RelayConfig
from backend.core.errors import (
    ApplicationError,
    ConfigurationError,
    RelayError,
    TransportError,
)
from backend.core.prompt_builder import truncate_history

logger = structlog.get_logger(__name__)

UNKNOWN_ERROR = "unknown error occurred"


class ChatClient:
    """POSTs chat messages to the relay with a static bearer credential."""

    def __init__(self, config: RelayConfig, session: requests.Session | None = None):
        self.relay_url = config.relay_url
        self.client_key = config.client_key
        self.history_limit = config.history_limit
        self.timeout = config.client_timeout
        self.session = session or requests.Session()

    @property
    def chat_endpoint(self) -> str:
        return f"{self.relay_url}/chat"

    def send_message(
        self,
        message: str,
        history: Sequence[ChatMessage | Mapping] = (),
    ) -> str:
        """Send one user message with up to the last 10 turns of history.

        Args:
            message: Non-empty user message.
            history: Prior turns, oldest first. Dicts are coerced to ChatMessage.

        Returns:
            The relay's `response` text.

        Raises:
            ConfigurationError: Relay URL or credential not configured.
            ValidationError: Empty message or malformed history.
            TransportError: Relay answered non-2xx or could not be reached.
            ApplicationError: Relay answered 2xx with `success: false`.
        """
        try:
            if not self.relay_url or not self.client_key:
                raise ConfigurationError("Chat relay URL or key is not set")

            # only the turns that will be sent are validated
            recent = truncate_history(list(history), self.history_limit)
            request = parse_chat_request({
                "message": message,
                "conversationHistory": [_as_dict(m) for m in recent],
            })
            body = request.model_dump(by_alias=True)

            return self._post(body)

        except RelayError as e:
            logger.error("chat_client.failed", error=str(e), kind=type(e).__name__)
            raise

    def _post(self, body: dict) -> str:
        try:
            response = self.session.post(
                self.chat_endpoint,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.client_key}",
                },
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Request to chat relay failed: {e}")

        if not response.ok:
            raise TransportError(
                f"HTTP {response.status_code}: {_error_field(response) or UNKNOWN_ERROR}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            raise ApplicationError("Chat relay returned a non-JSON response")

        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else None
            raise ApplicationError(error or UNKNOWN_ERROR)

        try:
            return ChatResponse.model_validate(data).response
        except PydanticValidationError:
            raise ApplicationError("Chat relay returned a malformed response")


def _as_dict(message: ChatMessage | Mapping) -> Mapping:
    if isinstance(message, ChatMessage):
        return message.model_dump()
    return message


def _error_field(response: requests.Response) -> str | None:
    """Best-effort `error` field from an error body; None if undecodable."""
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("error")
    return None
