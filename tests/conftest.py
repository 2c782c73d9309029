"""Shared test fixtures."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest

from docqa_engine.config.settings import Settings
from docqa_engine.generation.answer_generator import AnswerGenerator
from docqa_engine.models.domain import Document, Passage, RetrievedPassage, SearchHit
from docqa_engine.pipeline.answer_pipeline import AnswerPipeline
from docqa_engine.retrieval.reranker_llm import LLMReranker
from docqa_engine.retrieval.retriever import PassageRetriever
from docqa_engine.routing.router import QueryRouter
from docqa_engine.verification.cross_check import AnswerVerifier
from docqa_engine.verification.reconciler import AnswerReconciler


class FakeLLM:
    """Scripted LLM provider that records every call.

    ``generate`` returns ``handler(prompt)`` when a handler is set, else the
    next queued reply, else ``reply``. ``generate_stream`` yields ``tokens``.
    """

    def __init__(
        self,
        model: str = "fake-model",
        reply: str = "",
        replies: list[str] | None = None,
        tokens: list[str] | None = None,
        error: Exception | None = None,
        handler=None,
    ) -> None:
        self._model = model
        self.reply = reply
        self.replies = list(replies or [])
        self.tokens = list(tokens or [])
        self.error = error
        self.handler = handler
        self.calls: list[dict] = []
        self.stream_closed = False

    @property
    def model(self) -> str:
        return self._model

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "system": system, "temperature": temperature, "stream": False}
        )
        if self.error is not None:
            raise self.error
        if self.handler is not None:
            return self.handler(prompt)
        if self.replies:
            return self.replies.pop(0)
        return self.reply

    async def generate_stream(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ):
        self.calls.append(
            {"prompt": prompt, "system": system, "temperature": temperature, "stream": True}
        )
        if self.error is not None:
            raise self.error
        try:
            for token in self.tokens:
                yield token
        finally:
            self.stream_closed = True


class FakeEmbedder:
    """Fake embedder that tracks call counts."""

    def __init__(self) -> None:
        self.embed_query_calls = 0
        self.embed_passages_calls = 0

    @property
    def dimensions(self) -> int:
        return 3

    async def embed_passages(self, texts: list[str]) -> list[list[float]]:
        self.embed_passages_calls += 1
        return [[1.0, 0.0, 0.0] for _ in texts]

    async def embed_query(self, query: str) -> list[float]:
        self.embed_query_calls += 1
        return [1.0, 0.0, 0.0]


class FakeSearch:
    """Returns preset hits and records each request."""

    def __init__(self, hits: list[SearchHit] | None = None) -> None:
        self.hits = hits or []
        self.calls: list[dict] = []

    async def search(self, query_embedding, document_ids, limit=20):
        self.calls.append({"document_ids": document_ids, "limit": limit})
        return self.hits[:limit]


def make_hits(n: int, doc_id: str = "doc-1", filename: str = "contract.pdf") -> list[SearchHit]:
    document = Document(doc_id=doc_id, filename=filename, page_count=n)
    return [
        SearchHit(
            passage=Passage(
                passage_id=f"{doc_id}:{i}",
                doc_id=doc_id,
                text=f"Passage {i} text about clause {i}. " * 3,
                index=i,
                page_number=i + 1,
            ),
            document=document,
            similarity=round(0.9 - i * 0.01, 4),
        )
        for i in range(n)
    ]


def make_passages(n: int, **kwargs) -> list[RetrievedPassage]:
    return [
        RetrievedPassage(passage=h.passage, document=h.document, similarity=h.similarity)
        for h in make_hits(n, **kwargs)
    ]


def verdict(agrees: bool, confidence: float = 0.9, notes: str = "", issues=None) -> str:
    return json.dumps(
        {"agrees": agrees, "confidence": confidence, "notes": notes, "issues": issues or []}
    )


def arbitration(chosen: str, final_answer: str, confidence: float = 0.85) -> str:
    return json.dumps(
        {
            "analysis": f"Chose {chosen}.",
            "chosen": chosen,
            "final_answer": final_answer,
            "confidence": confidence,
        }
    )


@pytest.fixture
def settings():
    """Test settings with temp paths."""
    tmp = tempfile.mkdtemp()
    return Settings(
        openai_api_key="test-key",
        anthropic_api_key="test-key",
        google_api_key="test-key",
        passage_db_path=str(Path(tmp) / "test_passages.db"),
        faiss_index_path=str(Path(tmp) / "faiss_index"),
    )


@pytest.fixture
def tmp_dir():
    """Create a temporary directory."""
    return tempfile.mkdtemp()


class PipelineHarness:
    """An AnswerPipeline wired to fakes, with each fake exposed for assertions."""

    def __init__(self, settings: Settings, hits: list[SearchHit] | None = None) -> None:
        self.router_llm = FakeLLM(model="router-model", reply="needs_retrieval")
        self.reranker_llm = FakeLLM(model="rerank-model", reply="5")
        self.generator_llm = FakeLLM(model="primary-model", tokens=["The answer", " is 30 days."])
        self.verifier_llm = FakeLLM(model="verifier-model", reply=verdict(True, 0.95))
        self.reconciler_llm = FakeLLM(
            model="reconciler-model", reply=arbitration("primary", "The answer is 30 days.")
        )
        self.embedder = FakeEmbedder()
        self.search = FakeSearch(make_hits(3) if hits is None else hits)
        self.settings = settings

    def build(self) -> AnswerPipeline:
        s = self.settings
        return AnswerPipeline(
            router=QueryRouter(self.router_llm, history_turns=s.router_history_turns),
            retriever=PassageRetriever(self.embedder, self.search),
            reranker=LLMReranker(self.reranker_llm, max_chars=s.rerank_max_chars),
            generator=AnswerGenerator(
                self.generator_llm, history_messages=s.conversational_history_messages
            ),
            verifier=AnswerVerifier(
                self.verifier_llm, reconcile_threshold=s.reconcile_confidence_threshold
            ),
            reconciler=AnswerReconciler(
                self.reconciler_llm, fallback_confidence=s.reconcile_fallback_confidence
            ),
            settings=s,
        )


@pytest.fixture
def harness(settings):
    return PipelineHarness(settings)
