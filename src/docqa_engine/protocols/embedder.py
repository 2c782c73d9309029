"""Protocol for the embedding model shared by passage indexing and question search."""

from __future__ import annotations

from typing import Protocol


class Embedder(Protocol):
    """Passages and questions must land in the same vector space as the FAISS index."""

    async def embed_passages(self, passages: list[str]) -> list[list[float]]: ...

    async def embed_query(self, question: str) -> list[float]: ...

    @property
    def dimensions(self) -> int: ...
