"""Google Gemini provider (google-genai SDK)."""

import logging

from guidepost.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Provider using the Google Gemini API (google-genai SDK)."""

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.5-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        api_key = self.api_key()

        from google import genai
        from google.genai import types as genai_types

        use_model = model or self.default_model
        logger.debug("Sending prompt to Gemini (%s, %d chars)", use_model, len(prompt))
        client_kwargs: dict[str, object] = {}
        if self.timeout_seconds is not None:
            # milliseconds
            client_kwargs["http_options"] = genai_types.HttpOptions(
                timeout=int(self.timeout_seconds * 1000),
            )
        client = genai.Client(api_key=api_key, **client_kwargs)
        response = client.models.generate_content(
            model=use_model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system,
                response_mime_type="application/json",
            ),
        )

        return response.text or ""
