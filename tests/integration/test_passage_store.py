"""Integration tests for the SQLite passage store, FAISS index and stored search."""

from pathlib import Path

import numpy as np
import pytest

from docqa_engine.models.domain import Document, Passage
from docqa_engine.search.faiss_store import FAISSPassageIndex
from docqa_engine.search.passage_search import StoredPassageSearch
from docqa_engine.search.sqlite_passage_store import SQLitePassageStore

DIMS = 4


def _passages(doc_id: str, n: int) -> list[Passage]:
    return [
        Passage(
            passage_id=f"{doc_id}:{i}",
            doc_id=doc_id,
            text=f"{doc_id} passage {i}",
            index=i,
            page_number=i + 1,
            metadata={"section_title": "Terms"} if i == 0 else {},
        )
        for i in range(n)
    ]


@pytest.fixture
async def store(tmp_dir):
    store = SQLitePassageStore(str(Path(tmp_dir) / "passages.db"))
    await store.initialize()
    await store.save_document(Document(doc_id="lease", filename="lease.pdf", page_count=2))
    await store.save_document(Document(doc_id="memo", filename="memo.pdf", metadata={"owner": "ops"}))
    await store.save_passages(_passages("lease", 2) + _passages("memo", 2))
    return store


@pytest.fixture
def index():
    index = FAISSPassageIndex(dimensions=DIMS)
    index.add(
        ["lease:0", "lease:1", "memo:0", "memo:1"],
        np.array(
            [
                [1.0, 0.0, 0.0, 0.0],
                [0.6, 0.8, 0.0, 0.0],
                [0.9, 0.1, 0.0, 0.0],
                [0.0, 0.0, 1.0, 0.0],
            ],
            dtype=np.float32,
        ),
    )
    return index


async def test_store_round_trip(store):
    assert await store.count_documents() == 2
    assert await store.count_passages() == 4

    passages = await store.get_passages_by_ids(["lease:0", "missing"])
    assert list(passages) == ["lease:0"]
    assert passages["lease:0"].metadata == {"section_title": "Terms"}
    assert passages["lease:0"].page_number == 1

    documents = await store.get_documents_by_ids(["memo"])
    assert documents["memo"].metadata == {"owner": "ops"}
    assert documents["memo"].page_count is None

    assert await store.get_passage_ids_by_docs(["lease"]) == {"lease:0", "lease:1"}


def test_index_scores_are_cosine(index):
    results = index.search(np.array([2.0, 0.0, 0.0, 0.0]), top_k=2)
    assert [pid for pid, _ in results] == ["lease:0", "memo:0"]
    assert results[0][1] == pytest.approx(1.0, abs=1e-5)


def test_index_filters_to_allowed_ids(index):
    results = index.search(np.array([1.0, 0.0, 0.0, 0.0]), top_k=5, allowed_ids={"memo:0", "memo:1"})
    assert [pid for pid, _ in results] == ["memo:0", "memo:1"]


def test_index_readd_replaces_vector(index):
    index.add(["memo:1"], np.array([[1.0, 0.0, 0.0, 0.0]], dtype=np.float32))
    assert index.size == 4
    top = index.search(np.array([1.0, 0.0, 0.0, 0.0]), top_k=5, allowed_ids={"memo:0", "memo:1"})
    assert top[0][0] == "memo:1"


def test_index_save_and_load(index, tmp_dir):
    path = str(Path(tmp_dir) / "faiss_index")
    index.save(path)
    loaded = FAISSPassageIndex(dimensions=DIMS, index_path=path)
    assert loaded.size == 4
    assert loaded.search(np.array([0.0, 0.0, 1.0, 0.0]), top_k=1)[0][0] == "memo:1"


async def test_stored_search_restricts_to_documents(store, index):
    search = StoredPassageSearch(index=index, store=store)

    hits = await search.search([1.0, 0.0, 0.0, 0.0], ["lease"], limit=20)

    assert [h.passage.passage_id for h in hits] == ["lease:0", "lease:1"]
    assert hits[0].document.filename == "lease.pdf"
    assert hits[1].similarity == pytest.approx(0.6, abs=1e-5)


async def test_stored_search_unknown_documents(store, index):
    search = StoredPassageSearch(index=index, store=store)
    assert await search.search([1.0, 0.0, 0.0, 0.0], ["nope"]) == []
    assert await search.search([1.0, 0.0, 0.0, 0.0], []) == []
