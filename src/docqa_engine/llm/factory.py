"""Build an LLM provider for a pipeline role from settings."""

from __future__ import annotations

from docqa_engine.config.settings import Settings
from docqa_engine.exceptions import ConfigurationError
from docqa_engine.llm.anthropic_provider import AnthropicProvider
from docqa_engine.llm.gemini_provider import GeminiProvider
from docqa_engine.llm.openai_provider import OpenAIProvider
from docqa_engine.observability.logger import get_logger
from docqa_engine.protocols.llm import LLMProvider

logger = get_logger("llm_factory")

SUPPORTED_PROVIDERS = ("openai", "anthropic", "gemini")


def create_provider(kind: str, model: str, settings: Settings) -> LLMProvider:
    kind = (kind or "").lower()

    if kind == "openai":
        provider = OpenAIProvider(
            api_key=settings.openai_api_key,
            model=model,
            timeout=settings.llm_timeout_seconds,
            max_retries=settings.llm_max_retries,
        )
    elif kind == "anthropic":
        provider = AnthropicProvider(
            api_key=settings.anthropic_api_key,
            model=model,
            timeout=settings.llm_timeout_seconds,
            max_retries=settings.llm_max_retries,
        )
    elif kind == "gemini":
        provider = GeminiProvider(api_key=settings.google_api_key, model=model)
    else:
        raise ConfigurationError(
            f"Unsupported LLM provider {kind!r}; expected one of {', '.join(SUPPORTED_PROVIDERS)}"
        )

    logger.info("llm_provider_created", provider=kind, model=model)
    return provider
