"""OpenAI provider."""

import logging

from guidepost.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Provider using the OpenAI Chat Completions API."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        api_key = self.api_key()

        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for this provider. "
                "Install with: pip install 'guidepost-search[openai]'"
            )
            raise ImportError(msg) from None

        client_kwargs: dict[str, float] = {}
        if self.timeout_seconds is not None:
            client_kwargs["timeout"] = self.timeout_seconds
        client = openai.OpenAI(api_key=api_key, **client_kwargs)
        use_model = model or self.default_model

        messages = []
        if system is not None:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        logger.debug("Sending prompt to OpenAI (%s, %d chars)", use_model, len(prompt))
        response = client.chat.completions.create(model=use_model, messages=messages)

        return response.choices[0].message.content or ""
