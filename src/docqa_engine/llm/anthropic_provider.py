"""Anthropic messages-API provider."""

from __future__ import annotations

from collections.abc import AsyncIterator

from anthropic import AsyncAnthropic

from docqa_engine.exceptions import GenerationError
from docqa_engine.observability.logger import get_logger

logger = get_logger("anthropic")


class AnthropicProvider:
    def __init__(
        self,
        api_key: str,
        model: str = "claude-haiku-4-5",
        timeout: float = 60.0,
        max_retries: int = 2,
    ) -> None:
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=max_retries)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    def _request(
        self, prompt: str, system: str | None, temperature: float, max_tokens: int
    ) -> dict:
        request = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system
        return request

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> str:
        try:
            message = await self._client.messages.create(
                **self._request(prompt, system, temperature, max_tokens)
            )
        except Exception as e:
            raise GenerationError(f"Anthropic generation failed: {e}") from e
        return "".join(block.text for block in message.content if block.type == "text")

    async def generate_stream(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> AsyncIterator[str]:
        try:
            async with self._client.messages.stream(
                **self._request(prompt, system, temperature, max_tokens)
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield text
        except Exception as e:
            raise GenerationError(f"Anthropic streaming failed: {e}") from e
