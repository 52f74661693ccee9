"""AI provider registry with lazy loading.

Usage:
    from guidepost.llm import get_provider

    provider = get_provider("gemini")
    raw = provider.complete(prompt, system=instructions)
"""

import importlib

from guidepost.llm.base import LLMProvider, load_json_response, strip_code_fences

__all__ = [
    "LLMProvider",
    "available_providers",
    "get_provider",
    "load_json_response",
    "strip_code_fences",
]

# Lazy registry: maps provider name -> (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("guidepost.llm.anthropic", "AnthropicProvider"),
    "gemini": ("guidepost.llm.gemini", "GeminiProvider"),
    "openai": ("guidepost.llm.openai", "OpenAIProvider"),
}


def get_provider(
    name: str,
    api_key: str | None = None,
    timeout_seconds: float | None = None,
) -> LLMProvider:
    """Instantiate and return a provider by name.

    Args:
        name: Provider identifier (anthropic, gemini, openai).
        api_key: Explicit key; None reads the provider's environment variable.
        timeout_seconds: Per-request SDK timeout; None keeps the SDK default.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(api_key=api_key, timeout_seconds=timeout_seconds)  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
