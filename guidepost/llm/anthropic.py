"""Anthropic Claude provider."""

import logging

from guidepost.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """Provider using the Anthropic Messages API."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        api_key = self.api_key()

        try:
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for this provider. "
                "Install with: pip install 'guidepost-search[anthropic]'"
            )
            raise ImportError(msg) from None

        client_kwargs: dict[str, float] = {}
        if self.timeout_seconds is not None:
            client_kwargs["timeout"] = self.timeout_seconds
        client = anthropic.Anthropic(api_key=api_key, **client_kwargs)
        use_model = model or self.default_model

        logger.debug("Sending prompt to Anthropic (%s, %d chars)", use_model, len(prompt))
        kwargs = {"system": system} if system is not None else {}
        message = client.messages.create(
            model=use_model,
            max_tokens=2048,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )

        return message.content[0].text  # type: ignore[union-attr]
