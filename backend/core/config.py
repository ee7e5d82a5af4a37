"""Process-wide configuration, read once from the environment.

`load_config()` is the only place that touches `os.environ`; everything else
receives a `RelayConfig` instance at construction.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from backend.core.errors import ConfigurationError

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


@dataclass(frozen=True)
class RelayConfig:
    """Immutable settings for the relay endpoint and the relay client.

    Attributes:
        relay_url: Base URL of the relay, used by the client (no trailing /chat).
        client_key: Bearer credential the client attaches to every request.
        gemini_api_key: Server-side key for the generation API.
        gemini_model: Model name in the generateContent path.
        gemini_base_url: Generation API base URL.
        max_output_tokens: generationConfig.maxOutputTokens.
        temperature: generationConfig.temperature.
        history_limit: Max conversation turns kept for context.
        upstream_timeout: Transport timeout (s) for the generation API call.
        client_timeout: Transport timeout (s) for client -> relay calls.
    """
    relay_url: str = ""
    client_key: str = ""
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    max_output_tokens: int = 1000
    temperature: float = 0.7
    history_limit: int = 10
    upstream_timeout: float = 30.0
    client_timeout: float = 60.0


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_config(env: Mapping[str, str] | None = None) -> RelayConfig:
    """Build a RelayConfig from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ.

    Returns:
        Frozen RelayConfig.

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed.
    """
    env = os.environ if env is None else env

    return RelayConfig(
        relay_url=env.get("CHAT_RELAY_URL", "").rstrip("/"),
        client_key=env.get("CHAT_RELAY_KEY", ""),
        gemini_api_key=env.get("GEMINI_API_KEY", ""),
        gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        gemini_base_url=(env.get("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL).rstrip("/"),
        upstream_timeout=_float_env(env, "UPSTREAM_TIMEOUT", 30.0),
        client_timeout=_float_env(env, "CLIENT_TIMEOUT", 60.0),
    )
