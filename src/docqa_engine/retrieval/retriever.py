"""Embed the query and fetch nearest passages from the selected documents."""

from __future__ import annotations

from docqa_engine.models.domain import RetrievedPassage
from docqa_engine.observability.logger import get_logger
from docqa_engine.protocols.embedder import Embedder
from docqa_engine.protocols.search import PassageSearch

logger = get_logger("retriever")


class PassageRetriever:
    def __init__(self, embedder: Embedder, search: PassageSearch) -> None:
        self._embedder = embedder
        self._search = search

    async def retrieve(
        self,
        query: str,
        document_ids: list[str] | tuple[str, ...],
        limit: int = 20,
    ) -> list[RetrievedPassage]:
        if not document_ids:
            logger.info("retrieval_skipped", reason="no_documents")
            return []

        query_embedding = await self._embedder.embed_query(query)
        hits = await self._search.search(query_embedding, list(document_ids), limit)

        logger.info("retrieval_results", documents=len(document_ids), hits=len(hits))
        return self._deduplicate(
            [
                RetrievedPassage(
                    passage=hit.passage,
                    document=hit.document,
                    similarity=hit.similarity,
                )
                for hit in hits
            ]
        )

    @staticmethod
    def _deduplicate(passages: list[RetrievedPassage]) -> list[RetrievedPassage]:
        """Drop repeated passage ids, keeping the first (provider-ranked) hit."""
        seen: set[str] = set()
        unique = []
        for rp in passages:
            if rp.passage.passage_id in seen:
                continue
            seen.add(rp.passage.passage_id)
            unique.append(rp)
        return unique
