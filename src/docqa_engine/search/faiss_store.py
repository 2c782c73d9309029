"""FAISS passage index with ID mapping and persistence.

Vectors are L2-normalised before insertion and search, so inner-product
scores are cosine similarities.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

import faiss
import numpy as np

from docqa_engine.observability.logger import get_logger

logger = get_logger("faiss_store")


class FAISSPassageIndex:
    def __init__(self, dimensions: int, index_path: str | None = None) -> None:
        self._dimensions = dimensions
        self._index_path = index_path
        self._index = faiss.IndexIDMap(faiss.IndexFlatIP(dimensions))
        self._id_to_passage_id: dict[int, str] = {}
        self._passage_id_to_int: dict[str, int] = {}
        self._next_id: int = 0
        self._write_lock = asyncio.Lock()

        if index_path:
            self._try_load(index_path)

    def _try_load(self, path: str) -> None:
        index_file = os.path.join(path, "index.faiss")
        mapping_file = os.path.join(path, "id_mapping.json")
        if not (os.path.exists(index_file) and os.path.exists(mapping_file)):
            return
        self._index = faiss.read_index(index_file)
        with open(mapping_file) as f:
            data = json.load(f)
        self._id_to_passage_id = {int(k): v for k, v in data["id_to_passage_id"].items()}
        self._passage_id_to_int = data["passage_id_to_int"]
        self._next_id = data["next_id"]
        logger.info("faiss_loaded", size=self._index.ntotal, path=path)

    def add(self, passage_ids: list[str], embeddings: np.ndarray) -> None:
        if len(passage_ids) == 0:
            return
        embeddings = np.ascontiguousarray(embeddings, dtype=np.float32)
        faiss.normalize_L2(embeddings)
        existing = [pid for pid in passage_ids if pid in self._passage_id_to_int]
        if existing:
            # re-adding a passage replaces its vector
            self._index.remove_ids(
                np.array([self._passage_id_to_int[pid] for pid in existing], dtype=np.int64)
            )
        int_ids = self._assign_int_ids(passage_ids)
        self._index.add_with_ids(embeddings, np.array(int_ids, dtype=np.int64))
        logger.info("faiss_added", count=len(passage_ids), total=self._index.ntotal)

    async def add_safe(self, passage_ids: list[str], embeddings: np.ndarray) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self.add, passage_ids, embeddings)

    def search(
        self,
        query_embedding: np.ndarray,
        top_k: int,
        allowed_ids: set[str] | None = None,
    ) -> list[tuple[str, float]]:
        """Return (passage_id, cosine) pairs, best first.

        When ``allowed_ids`` is given, the whole index is scanned and hits
        outside the set are dropped before truncating to ``top_k``.
        """
        if self._index.ntotal == 0 or top_k <= 0:
            return []
        query = np.ascontiguousarray(query_embedding, dtype=np.float32).reshape(1, -1)
        faiss.normalize_L2(query)
        k = self._index.ntotal if allowed_ids is not None else min(top_k, self._index.ntotal)
        scores, indices = self._index.search(query, k)

        results: list[tuple[str, float]] = []
        for idx, score in zip(indices[0], scores[0]):
            idx = int(idx)
            if idx == -1:
                continue
            passage_id = self._id_to_passage_id.get(idx)
            if passage_id is None:
                continue
            if allowed_ids is not None and passage_id not in allowed_ids:
                continue
            results.append((passage_id, float(score)))
            if len(results) >= top_k:
                break
        return results

    def save(self, path: str | None = None) -> None:
        path = path or self._index_path
        if not path:
            return
        Path(path).mkdir(parents=True, exist_ok=True)
        faiss.write_index(self._index, os.path.join(path, "index.faiss"))
        with open(os.path.join(path, "id_mapping.json"), "w") as f:
            json.dump(
                {
                    "id_to_passage_id": self._id_to_passage_id,
                    "passage_id_to_int": self._passage_id_to_int,
                    "next_id": self._next_id,
                },
                f,
            )
        logger.info("faiss_saved", path=path, size=self._index.ntotal)

    @property
    def size(self) -> int:
        return self._index.ntotal

    def _assign_int_ids(self, passage_ids: list[str]) -> list[int]:
        int_ids = []
        for pid in passage_ids:
            if pid not in self._passage_id_to_int:
                self._id_to_passage_id[self._next_id] = pid
                self._passage_id_to_int[pid] = self._next_id
                self._next_id += 1
            int_ids.append(self._passage_id_to_int[pid])
        return int_ids
