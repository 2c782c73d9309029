"""Protocol for the similarity search collaborator."""

from __future__ import annotations

from typing import Protocol

from docqa_engine.models.domain import SearchHit


class PassageSearch(Protocol):
    async def search(
        self,
        query_embedding: list[float],
        document_ids: list[str],
        limit: int = 20,
    ) -> list[SearchHit]: ...
