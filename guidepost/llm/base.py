"""Abstract base class for AI text-completion providers and shared helpers."""

import json
import os
import re
from abc import ABC, abstractmethod
from typing import Any

from guidepost.core.errors import ConfigurationError

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def strip_code_fences(raw_text: str) -> str:
    """Remove a markdown code fence (```json ... ```) wrapped around a response."""
    cleaned = _FENCE_OPEN.sub("", raw_text.strip())
    return _FENCE_CLOSE.sub("", cleaned).strip()


def load_json_response(raw_text: str) -> Any:
    """Strip code fences and parse the remainder as JSON.

    Raises json.JSONDecodeError on malformed text.
    """
    return json.loads(strip_code_fences(raw_text))


class LLMProvider(ABC):
    """Base class that every provider must implement.

    ``complete`` is blocking; async callers run it on a worker thread.
    ``timeout_seconds`` is handed to the SDK client so an abandoned call
    still ends on its own.
    """

    def __init__(self, api_key: str | None = None, timeout_seconds: float | None = None) -> None:
        self._api_key = api_key
        self.timeout_seconds = timeout_seconds

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'gemini')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str:
        """Environment variable name for the API key."""

    @property
    def is_configured(self) -> bool:
        """True when an API key was passed in or is present in the environment."""
        return bool(self._api_key or os.environ.get(self.env_var))

    def api_key(self) -> str:
        """Return the API key, raising ConfigurationError when it is missing."""
        key = self._api_key or os.environ.get(self.env_var)
        if not key:
            msg = f"{self.env_var} environment variable is required"
            raise ConfigurationError(msg)
        return key

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        """Send a prompt and return the raw response text.

        Args:
            prompt: User prompt text.
            model: Override the provider's default model. None uses default.
            system: Optional system instruction.

        Returns:
            Raw text response (expected to contain JSON).
        """
