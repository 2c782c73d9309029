"""Similarity search over stored passages, restricted to a document set."""

from __future__ import annotations

import asyncio

import numpy as np

from docqa_engine.exceptions import RetrievalError
from docqa_engine.models.domain import SearchHit
from docqa_engine.observability.logger import get_logger
from docqa_engine.search.faiss_store import FAISSPassageIndex
from docqa_engine.search.sqlite_passage_store import SQLitePassageStore

logger = get_logger("passage_search")


class StoredPassageSearch:
    def __init__(self, index: FAISSPassageIndex, store: SQLitePassageStore) -> None:
        self._index = index
        self._store = store

    async def search(
        self,
        query_embedding: list[float],
        document_ids: list[str],
        limit: int = 20,
    ) -> list[SearchHit]:
        if not document_ids:
            return []

        try:
            allowed = await self._store.get_passage_ids_by_docs(list(document_ids))
            if not allowed:
                return []
            query = np.array(query_embedding, dtype=np.float32)
            ranked = await asyncio.to_thread(self._index.search, query, limit, allowed)
            if not ranked:
                return []

            passages = await self._store.get_passages_by_ids([pid for pid, _ in ranked])
            documents = await self._store.get_documents_by_ids(
                sorted({p.doc_id for p in passages.values()})
            )
        except Exception as e:
            raise RetrievalError(f"Passage search failed: {e}") from e

        hits: list[SearchHit] = []
        for passage_id, similarity in ranked:
            passage = passages.get(passage_id)
            if passage is None:
                continue
            document = documents.get(passage.doc_id)
            if document is None:
                continue
            hits.append(SearchHit(passage=passage, document=document, similarity=similarity))

        logger.info("passage_search", documents=len(document_ids), hits=len(hits))
        return hits
