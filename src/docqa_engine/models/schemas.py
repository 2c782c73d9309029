"""Pydantic models for pipeline events and API request/response serialization."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

from docqa_engine.models.domain import Tier

ChosenSource = Literal["primary", "verification", "synthesized"]


class BoundingBox(BaseModel):
    x: float  # % from left edge (0-100)
    y: float  # % from top edge (0-100)
    width: float
    height: float
    page: int  # 1-indexed


class Citation(BaseModel):
    document_id: str
    document_name: str
    chunk_id: str
    chunk_index: int
    page_number: int | None = None
    excerpt: str
    relevance_score: float
    bbox: BoundingBox | None = None


class VerificationResult(BaseModel):
    model: str
    agrees: bool
    notes: str
    issues: list[str] = Field(default_factory=list)
    confidence: float | None = None


class ReconciliationResult(BaseModel):
    model: str
    chosen: ChosenSource
    resolution: str
    final_answer: str
    confidence: float


# --- Event payloads -------------------------------------------------------


class EventData(BaseModel):
    def wire(self) -> dict:
        """JSON-ready payload as sent to the caller."""
        return self.model_dump(mode="json")


def _wire_citations(citations: list[Citation]) -> list[dict]:
    return [c.model_dump(mode="json", exclude_none=True) for c in citations]


class ThinkingData(EventData):
    step: str


class SourcesData(EventData):
    citations: list[Citation]

    def wire(self) -> dict:
        return {"citations": _wire_citations(self.citations)}


class TokenData(EventData):
    token: str


class VerificationData(EventData):
    agrees: bool
    model: str
    notes: str


class ReconciliationData(EventData):
    model: str
    chosen: ChosenSource
    resolution: str


class DoneData(EventData):
    response: str
    citations: list[Citation]
    intent: str
    model_used: str
    verification: VerificationResult | None = None
    reconciliation: ReconciliationResult | None = None
    confidence: float | None = None
    latency_ms: float

    def wire(self) -> dict:
        data = self.model_dump(mode="json")
        data["citations"] = _wire_citations(self.citations)
        if self.confidence is None:
            data.pop("confidence")
        return data


class ErrorData(EventData):
    message: str
    latency_ms: float


# --- Events (discriminated on ``type``) -----------------------------------


class ThinkingEvent(BaseModel):
    type: Literal["thinking"] = "thinking"
    data: ThinkingData


class SourcesEvent(BaseModel):
    type: Literal["sources"] = "sources"
    data: SourcesData


class TokenEvent(BaseModel):
    type: Literal["token"] = "token"
    data: TokenData


class VerificationEvent(BaseModel):
    type: Literal["verification"] = "verification"
    data: VerificationData


class ReconciliationEvent(BaseModel):
    type: Literal["reconciliation"] = "reconciliation"
    data: ReconciliationData


class DoneEvent(BaseModel):
    type: Literal["done"] = "done"
    data: DoneData


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    data: ErrorData


PipelineEvent = Annotated[
    Union[
        ThinkingEvent,
        SourcesEvent,
        TokenEvent,
        VerificationEvent,
        ReconciliationEvent,
        DoneEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

TERMINAL_EVENT_TYPES = frozenset({"done", "error"})


# --- API -----------------------------------------------------------------


class ChatTurnSchema(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class AskRequest(BaseModel):
    query: str = Field(min_length=1)
    conversation_id: str = ""
    document_ids: list[str] = Field(default_factory=list)
    history: list[ChatTurnSchema] = Field(default_factory=list)
    response_mode: Tier = Tier.STANDARD

    @field_validator("response_mode", mode="before")
    @classmethod
    def _default_unknown_mode(cls, value):
        valid = {t.value for t in Tier}
        if isinstance(value, Tier):
            return value
        return value if value in valid else Tier.STANDARD


class HealthResponse(BaseModel):
    status: str
    document_count: int
    passage_count: int
    index_size: int


# --- Analytics hand-off --------------------------------------------------


class ModelAnswer(BaseModel):
    model: str
    answer: str
    citations: list[Citation] = Field(default_factory=list)


class AnswerRecord(BaseModel):
    document_id: str
    question: str
    primary_answer: ModelAnswer
    verification: VerificationResult | None = None
    reconciliation: ReconciliationResult | None = None
    final_answer: str
    confidence: float
    response_mode: Tier
    response_time_ms: float | None = None
