"""Protocol for reranking providers."""

from __future__ import annotations

from typing import Protocol

from docqa_engine.models.domain import RetrievedPassage


class Reranker(Protocol):
    async def rerank(
        self,
        query: str,
        passages: list[RetrievedPassage],
        keep: int = 5,
    ) -> list[RetrievedPassage]: ...
