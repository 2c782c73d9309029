"""Resolve a primary/verifier disagreement into a single final answer."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, field_validator

from docqa_engine.config.constants import RECONCILE_API_FAILED_NOTE, RECONCILE_PARSE_FAILED_NOTE
from docqa_engine.generation.prompt_templates import (
    RECONCILE_PROMPT,
    RECONCILE_SYSTEM,
    format_source_block,
)
from docqa_engine.models.domain import RetrievedPassage
from docqa_engine.models.schemas import ChosenSource, ReconciliationResult, VerificationResult
from docqa_engine.observability.logger import get_logger
from docqa_engine.protocols.llm import LLMProvider
from docqa_engine.verification.structured_output import parse_structured

logger = get_logger("reconciler")


class ReconcilerReply(BaseModel):
    analysis: str = ""
    chosen: ChosenSource
    final_answer: str = ""
    confidence: float = 0.5

    @field_validator("confidence")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return max(0.0, min(1.0, v))


@dataclass
class ReconciliationOutcome:
    result: ReconciliationResult
    final_answer: str
    confidence: float


class AnswerReconciler:
    def __init__(
        self,
        llm: LLMProvider,
        fallback_confidence: float = 0.5,
        max_tokens: int = 2048,
    ) -> None:
        self._llm = llm
        self._fallback_confidence = fallback_confidence
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._llm.model

    def _fallback(self, primary_answer: str, note: str) -> ReconciliationOutcome:
        return ReconciliationOutcome(
            result=ReconciliationResult(
                model=self.model,
                chosen="primary",
                resolution=note,
                final_answer=primary_answer,
                confidence=self._fallback_confidence,
            ),
            final_answer=primary_answer,
            confidence=self._fallback_confidence,
        )

    async def reconcile(
        self,
        query: str,
        passages: list[RetrievedPassage],
        primary_answer: str,
        verification: VerificationResult,
    ) -> ReconciliationOutcome:
        prompt = RECONCILE_PROMPT.format(
            query=query,
            answer=primary_answer,
            agrees="Yes" if verification.agrees else "No",
            notes=verification.notes,
            source_block=format_source_block(passages),
        )

        try:
            raw = await self._llm.generate(
                prompt, system=RECONCILE_SYSTEM, temperature=0.0, max_tokens=self._max_tokens
            )
        except Exception as e:
            logger.warning("reconciliation_failed", model=self.model, error=str(e))
            return self._fallback(primary_answer, RECONCILE_API_FAILED_NOTE)

        reply = parse_structured(raw, ReconcilerReply, None)
        if reply is None:
            return self._fallback(primary_answer, RECONCILE_PARSE_FAILED_NOTE)

        # Choosing the primary answer delivers it unchanged, whatever text came back.
        if reply.chosen == "primary" or not reply.final_answer:
            final_answer = primary_answer
        else:
            final_answer = reply.final_answer
        logger.info(
            "reconciled",
            model=self.model,
            chosen=reply.chosen,
            confidence=round(reply.confidence, 4),
            rewritten=final_answer != primary_answer,
        )
        return ReconciliationOutcome(
            result=ReconciliationResult(
                model=self.model,
                chosen=reply.chosen,
                resolution=reply.analysis,
                final_answer=final_answer,
                confidence=reply.confidence,
            ),
            final_answer=final_answer,
            confidence=reply.confidence,
        )
