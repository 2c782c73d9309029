"""Cross-check the primary answer against its sources with an independent model."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator

from docqa_engine.config.constants import VERIFY_API_FAILED_NOTE, VERIFY_PARSE_FAILED_NOTE
from docqa_engine.generation.prompt_templates import (
    VERIFY_PROMPT,
    VERIFY_SYSTEM,
    format_source_block,
)
from docqa_engine.models.domain import RetrievedPassage
from docqa_engine.models.schemas import VerificationResult
from docqa_engine.observability.logger import get_logger
from docqa_engine.protocols.llm import LLMProvider
from docqa_engine.verification.structured_output import parse_structured

logger = get_logger("verifier")


class VerifierReply(BaseModel):
    agrees: bool
    confidence: float = 0.5
    notes: str = ""
    issues: list[str] = Field(default_factory=list)
    suggested_correction: str | None = None

    @field_validator("confidence")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return max(0.0, min(1.0, v))

    @field_validator("issues", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or []


_PARSE_FALLBACK = VerifierReply(agrees=True, confidence=0.5, notes=VERIFY_PARSE_FAILED_NOTE)


@dataclass
class VerificationOutcome:
    result: VerificationResult
    should_reconcile: bool


class AnswerVerifier:
    def __init__(
        self,
        llm: LLMProvider,
        reconcile_threshold: float = 0.7,
        max_tokens: int = 1024,
    ) -> None:
        self._llm = llm
        self._threshold = reconcile_threshold
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._llm.model

    async def verify(
        self,
        query: str,
        passages: list[RetrievedPassage],
        primary_answer: str,
    ) -> VerificationOutcome:
        """Never raises on model failure: errors and unparseable replies count as agreement."""
        prompt = VERIFY_PROMPT.format(
            query=query,
            answer=primary_answer,
            source_block=format_source_block(passages),
        )

        try:
            raw = await self._llm.generate(
                prompt, system=VERIFY_SYSTEM, temperature=0.0, max_tokens=self._max_tokens
            )
        except Exception as e:
            # A verifier outage looks the same as agreement downstream; the note and
            # this warning are the only trace of it.
            logger.warning("verification_failed", model=self.model, error=str(e))
            return VerificationOutcome(
                result=VerificationResult(
                    model=self.model, agrees=True, notes=VERIFY_API_FAILED_NOTE
                ),
                should_reconcile=False,
            )

        reply = parse_structured(raw, VerifierReply, _PARSE_FALLBACK)
        if reply is _PARSE_FALLBACK:
            logger.warning("verification_unparseable", model=self.model)

        notes = reply.notes
        if reply.issues:
            notes += f"\nIssues: {', '.join(reply.issues)}"

        should_reconcile = not reply.agrees and reply.confidence > self._threshold
        logger.info(
            "verified",
            model=self.model,
            agrees=reply.agrees,
            confidence=round(reply.confidence, 4),
            issues=len(reply.issues),
            should_reconcile=should_reconcile,
        )
        return VerificationOutcome(
            result=VerificationResult(
                model=self.model,
                agrees=reply.agrees,
                notes=notes,
                issues=reply.issues,
                confidence=reply.confidence,
            ),
            should_reconcile=should_reconcile,
        )
