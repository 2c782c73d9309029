"""Summarise a finished run for the analytics sink."""

from __future__ import annotations

from docqa_engine.models.domain import Tier
from docqa_engine.models.schemas import AnswerRecord, DoneData, ModelAnswer


def build_answer_record(
    done: DoneData,
    question: str,
    document_id: str,
    response_mode: Tier,
    agree_confidence: float = 0.95,
    disagree_confidence: float = 0.75,
) -> AnswerRecord:
    """Runs without a confidence (quick tier) are recorded at the verdict-mapped
    value, which is the disagreement value when nothing was verified."""
    confidence = done.confidence
    if confidence is None:
        agreed = done.verification is not None and done.verification.agrees
        confidence = agree_confidence if agreed else disagree_confidence

    return AnswerRecord(
        document_id=document_id,
        question=question,
        primary_answer=ModelAnswer(
            model=done.model_used,
            answer=done.response,
            citations=done.citations,
        ),
        verification=done.verification,
        reconciliation=done.reconciliation,
        final_answer=done.response,
        confidence=confidence,
        response_mode=response_mode,
        response_time_ms=done.latency_ms,
    )
