"""Core domain objects used throughout the system."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Intent(str, Enum):
    NEEDS_RETRIEVAL = "needs_retrieval"
    CONVERSATIONAL = "conversational"
    OUT_OF_SCOPE = "out_of_scope"


class Tier(str, Enum):
    QUICK = "quick"
    STANDARD = "standard"
    THOROUGH = "thorough"


@dataclass(frozen=True)
class ChatTurn:
    role: str  # "user" or "assistant"
    content: str


@dataclass(frozen=True)
class Query:
    text: str
    conversation_id: str
    document_ids: tuple[str, ...] = ()
    history: tuple[ChatTurn, ...] = ()  # oldest-first
    tier: Tier = Tier.STANDARD


@dataclass
class Document:
    doc_id: str
    filename: str
    page_count: int | None = None
    metadata: dict = field(default_factory=dict)


@dataclass
class Passage:
    passage_id: str
    doc_id: str
    text: str
    index: int
    page_number: int | None = None
    metadata: dict = field(default_factory=dict)  # may carry "bbox", "section_title"


@dataclass
class SearchHit:
    passage: Passage
    document: Document
    similarity: float


@dataclass
class RetrievedPassage:
    passage: Passage
    document: Document
    similarity: float
    rerank_score: float | None = None

    @property
    def relevance(self) -> float:
        return self.rerank_score if self.rerank_score is not None else self.similarity
