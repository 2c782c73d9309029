"""OpenAI chat-completions provider."""

from __future__ import annotations

from collections.abc import AsyncIterator

from openai import AsyncOpenAI

from docqa_engine.exceptions import GenerationError
from docqa_engine.observability.logger import get_logger

logger = get_logger("openai")


class OpenAIProvider:
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        max_retries: int = 2,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=max_retries)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    @staticmethod
    def _messages(prompt: str, system: str | None) -> list[dict]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=self._messages(prompt, system),
                temperature=temperature,
                max_tokens=max_tokens,
            )
            return response.choices[0].message.content or ""
        except Exception as e:
            raise GenerationError(f"OpenAI generation failed: {e}") from e

    async def generate_stream(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> AsyncIterator[str]:
        try:
            stream = await self._client.chat.completions.create(
                model=self._model,
                messages=self._messages(prompt, system),
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
            async with stream:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    token = chunk.choices[0].delta.content
                    if token:
                        yield token
        except Exception as e:
            raise GenerationError(f"OpenAI streaming failed: {e}") from e
