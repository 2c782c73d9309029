"""OpenAI embedding provider using text-embedding-3-small."""

from __future__ import annotations

from openai import AsyncOpenAI

from docqa_engine.exceptions import EmbeddingError
from docqa_engine.observability.logger import get_logger

logger = get_logger("embeddings")


class OpenAIEmbedder:
    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        batch_size: int = 100,
        dimensions: int = 1536,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self._model = model
        self._batch_size = batch_size
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed_passages(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        embeddings: list[list[float]] = []
        try:
            for start in range(0, len(texts), self._batch_size):
                response = await self._client.embeddings.create(
                    input=texts[start : start + self._batch_size],
                    model=self._model,
                    dimensions=self._dimensions,
                )
                embeddings.extend(item.embedding for item in response.data)
        except Exception as e:
            raise EmbeddingError(f"Failed to embed {len(texts)} texts: {e}") from e
        logger.info("embedded_texts", count=len(texts), model=self._model)
        return embeddings

    async def embed_query(self, query: str) -> list[float]:
        try:
            response = await self._client.embeddings.create(
                input=[query], model=self._model, dimensions=self._dimensions
            )
            return response.data[0].embedding
        except Exception as e:
            raise EmbeddingError(f"Failed to embed query: {e}") from e
