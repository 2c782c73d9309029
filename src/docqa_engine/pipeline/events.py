"""Event constructors and SSE framing for the answer stream."""

from __future__ import annotations

import json

from pydantic import TypeAdapter

from docqa_engine.models.schemas import (
    Citation,
    DoneData,
    DoneEvent,
    ErrorData,
    ErrorEvent,
    PipelineEvent,
    ReconciliationData,
    ReconciliationEvent,
    ReconciliationResult,
    SourcesData,
    SourcesEvent,
    ThinkingData,
    ThinkingEvent,
    TokenData,
    TokenEvent,
    VerificationData,
    VerificationEvent,
    VerificationResult,
)

# The wire name for streamed answer fragments differs from the internal one.
_WIRE_NAMES = {"token": "content"}

_event_adapter: TypeAdapter = TypeAdapter(PipelineEvent)


def thinking(step: str) -> ThinkingEvent:
    return ThinkingEvent(data=ThinkingData(step=step))


def sources(citations: list[Citation]) -> SourcesEvent:
    return SourcesEvent(data=SourcesData(citations=citations))


def token(text: str) -> TokenEvent:
    return TokenEvent(data=TokenData(token=text))


def verification(result: VerificationResult) -> VerificationEvent:
    return VerificationEvent(
        data=VerificationData(agrees=result.agrees, model=result.model, notes=result.notes)
    )


def reconciliation(result: ReconciliationResult) -> ReconciliationEvent:
    return ReconciliationEvent(
        data=ReconciliationData(
            model=result.model, chosen=result.chosen, resolution=result.resolution
        )
    )


def done(data: DoneData) -> DoneEvent:
    return DoneEvent(data=data)


def error(message: str, latency_ms: float) -> ErrorEvent:
    return ErrorEvent(data=ErrorData(message=message, latency_ms=round(latency_ms, 2)))


def wire_name(event: PipelineEvent) -> str:
    return _WIRE_NAMES.get(event.type, event.type)


def to_sse(event: PipelineEvent) -> str:
    """Frame one event as ``event: <name>\\ndata: <json>\\n\\n``."""
    payload = json.dumps(event.data.wire(), ensure_ascii=False)
    return f"event: {wire_name(event)}\ndata: {payload}\n\n"


def parse_event(raw: dict) -> PipelineEvent:
    """Rebuild a typed event from its ``{"type", "data"}`` dict form."""
    return _event_adapter.validate_python(raw)
