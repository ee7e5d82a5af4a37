"""Gemini generateContent adapter.

Sends a single-text-part prompt to the Gemini REST API and extracts the
first candidate's text. No retries: a failed call surfaces as UpstreamError.
"""

import httpx
import structlog

from backend.core.config import RelayConfig
from backend.core.errors import MissingCredential, UpstreamEmptyResponse, UpstreamError

logger = structlog.get_logger(__name__)


class GeminiClient:
    """Thin async wrapper around POST /models/{model}:generateContent."""

    def __init__(self, config: RelayConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = config.gemini_api_key
        self.model_name = config.gemini_model
        self.base_url = config.gemini_base_url
        self.max_output_tokens = config.max_output_tokens
        self.temperature = config.temperature
        self.timeout = config.upstream_timeout
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model_name}:generateContent"

    def is_healthy(self) -> bool:
        """True if an API key is configured. Does not call the API."""
        return bool(self.api_key)

    def build_payload(self, prompt: str) -> dict:
        """Request body with the prompt as the sole text part."""
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": self.max_output_tokens,
                "temperature": self.temperature,
            },
        }

    async def generate(self, prompt: str) -> str:
        """Call the generation API and return the first candidate's text.

        Args:
            prompt: Fully rendered prompt.

        Returns:
            Candidate text.

        Raises:
            MissingCredential: If no API key is configured.
            UpstreamError: On network failure, non-2xx status, or a non-JSON body.
            UpstreamEmptyResponse: If the body has no candidate content.
        """
        if not self.api_key:
            raise MissingCredential("GEMINI_API_KEY is not set")

        logger.debug("gemini.request", model=self.model_name, prompt_len=len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    headers={
                        "Content-Type": "application/json",
                        "x-goog-api-key": self.api_key,
                    },
                    json=self.build_payload(prompt),
                )
        except httpx.RequestError as e:
            logger.error("gemini.request_failed", error=str(e))
            raise UpstreamError(f"Gemini API request failed: {e}")

        if not response.is_success:
            logger.error("gemini.error", status=response.status_code, body=response.text)
            raise UpstreamError(
                f"Gemini API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError:
            logger.error("gemini.invalid_json", body=response.text[:200])
            raise UpstreamError(
                "Gemini API returned a non-JSON response",
                status_code=response.status_code,
                body=response.text,
            )

        return _extract_text(data, response.status_code)


def _extract_text(data: dict, status_code: int) -> str:
    """Pull candidates[0].content.parts[0].text out of a generateContent body."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
        if not isinstance(text, str):
            raise TypeError("candidate text is not a string")
    except (KeyError, IndexError, TypeError):
        logger.error("gemini.empty_response", keys=list(data) if isinstance(data, dict) else None)
        raise UpstreamEmptyResponse("No response from Gemini API", status_code=status_code)

    return text
