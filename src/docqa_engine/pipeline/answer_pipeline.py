"""Answer pipeline orchestrator: route, retrieve, rerank, generate, verify, reconcile.

Each invocation is a self-contained run. Stages read and extend a per-run
``RunState``; the orchestrator composes them linearly and turns their
results into the uniform event stream consumed by the API layer.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass, field

from docqa_engine.config.constants import (
    CORRECTED_RESPONSE_MARKER,
    STEP_ANALYZING,
    STEP_GENERATING,
    STEP_RANKING,
    STEP_RECONCILING,
    STEP_SEARCHING,
    STEP_UPDATING,
    STEP_VERIFYING,
)
from docqa_engine.config.settings import Settings
from docqa_engine.exceptions import PipelineRunError
from docqa_engine.generation.answer_generator import AnswerGenerator, PromptBundle
from docqa_engine.models.domain import Intent, Query, RetrievedPassage, Tier
from docqa_engine.models.schemas import (
    Citation,
    DoneData,
    DoneEvent,
    ErrorEvent,
    PipelineEvent,
    ReconciliationResult,
    VerificationResult,
)
from docqa_engine.observability.logger import get_logger
from docqa_engine.observability.metrics import (
    log_retrieval_metrics,
    log_run_metrics,
    log_verification_metrics,
)
from docqa_engine.observability.tracing import TraceContext
from docqa_engine.pipeline import events
from docqa_engine.protocols.reranker import Reranker
from docqa_engine.retrieval.retriever import PassageRetriever
from docqa_engine.routing.router import QueryRouter
from docqa_engine.verification.cross_check import AnswerVerifier
from docqa_engine.verification.reconciler import AnswerReconciler

logger = get_logger("answer_pipeline")


@dataclass
class RunState:
    query: Query
    trace: TraceContext
    intent: Intent | None = None
    passages: list[RetrievedPassage] = field(default_factory=list)
    prompt: PromptBundle | None = None
    citations: list[Citation] = field(default_factory=list)
    primary_answer: str = ""
    response: str = ""
    verification: VerificationResult | None = None
    should_reconcile: bool = False
    reconciliation: ReconciliationResult | None = None
    confidence: float | None = None

    @property
    def corrected(self) -> bool:
        r = self.reconciliation
        return r is not None and r.chosen != "primary" and r.final_answer != self.primary_answer


class AnswerPipeline:
    def __init__(
        self,
        router: QueryRouter,
        retriever: PassageRetriever,
        reranker: Reranker,
        generator: AnswerGenerator,
        verifier: AnswerVerifier,
        reconciler: AnswerReconciler,
        settings: Settings,
    ) -> None:
        self._router = router
        self._retriever = retriever
        self._reranker = reranker
        self._generator = generator
        self._verifier = verifier
        self._reconciler = reconciler
        self._settings = settings

    async def stream(self, query: Query) -> AsyncIterator[PipelineEvent]:
        """Yield pipeline events; the last one is always ``done`` or ``error``.

        Closing the generator or cancelling the consuming task propagates
        untouched and is never reported as an ``error`` event.
        """
        state = RunState(query=query, trace=TraceContext())
        logger.info(
            "run_started",
            trace_id=state.trace.trace_id,
            conversation_id=query.conversation_id,
            tier=query.tier.value,
            documents=len(query.document_ids),
            history=len(query.history),
        )

        try:
            # STEP 1: Routing
            yield events.thinking(STEP_ANALYZING)
            state = await self._route(state)

            # STEP 2: Retrieval and reranking
            if state.intent == Intent.NEEDS_RETRIEVAL:
                yield events.thinking(STEP_SEARCHING)
                state = await self._retrieve(state)
                yield events.thinking(STEP_RANKING)
                state = await self._rerank(state)

            state = self._assemble_prompt(state)
            if state.citations:
                yield events.sources(state.citations)

            # STEP 3: Streamed generation
            yield events.thinking(STEP_GENERATING)
            async with aclosing(self._generate(state)) as tokens:
                async for event in tokens:
                    yield event

            # STEP 4: Cross-check
            if query.tier != Tier.QUICK:
                yield events.thinking(STEP_VERIFYING)
                state = await self._verify(state)
                yield events.verification(state.verification)

                # STEP 5: Arbitration
                if query.tier == Tier.THOROUGH and state.should_reconcile:
                    yield events.thinking(STEP_RECONCILING)
                    state = await self._reconcile(state)
                    yield events.reconciliation(state.reconciliation)
                    if state.corrected:
                        yield events.thinking(STEP_UPDATING)
                        yield events.token(CORRECTED_RESPONSE_MARKER)
                        yield events.token(state.response)
        except Exception as e:
            latency_ms = state.trace.elapsed_ms
            logger.error(
                "run_failed",
                trace_id=state.trace.trace_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self._log_summary(state, "error")
            yield events.error(str(e) or type(e).__name__, latency_ms)
            return

        self._log_summary(state, "done")
        yield events.done(self._build_done(state))

    async def run(self, query: Query) -> DoneData:
        """Drain the stream and return the final payload.

        Raises PipelineRunError when the run ends with an ``error`` event.
        """
        async with aclosing(self.stream(query)) as stream:
            async for event in stream:
                if isinstance(event, DoneEvent):
                    return event.data
                if isinstance(event, ErrorEvent):
                    raise PipelineRunError(event.data.message, event.data.latency_ms)
        raise PipelineRunError("stream ended without a terminal event", 0.0)

    # --- Stages -----------------------------------------------------------

    async def _route(self, state: RunState) -> RunState:
        with state.trace.span("routing"):
            state.intent = await self._router.classify(state.query.text, state.query.history)
        return state

    async def _retrieve(self, state: RunState) -> RunState:
        with state.trace.span("retrieval"):
            state.passages = await self._retriever.retrieve(
                state.query.text,
                state.query.document_ids,
                limit=self._settings.retrieval_limit,
            )
        return state

    async def _rerank(self, state: RunState) -> RunState:
        retrieved = len(state.passages)
        with state.trace.span("reranking", input_count=retrieved):
            state.passages = await self._reranker.rerank(
                state.query.text, state.passages, keep=self._settings.rerank_keep
            )
        log_retrieval_metrics(
            state.trace.trace_id,
            retrieved=retrieved,
            kept=len(state.passages),
            top_scores=[rp.relevance for rp in state.passages],
            unique_docs=len({rp.document.doc_id for rp in state.passages}),
        )
        return state

    def _assemble_prompt(self, state: RunState) -> RunState:
        state.prompt = self._generator.build_prompt(
            state.query.text, state.intent, state.passages, state.query.history
        )
        state.citations = state.prompt.citations
        return state

    async def _generate(self, state: RunState) -> AsyncIterator[PipelineEvent]:
        stream = self._generator.stream_prompt(state.prompt)
        with state.trace.span("generation"):
            async with aclosing(stream):
                async for text, result in stream:
                    if text is not None:
                        yield events.token(text)
                    if result is not None:
                        state.primary_answer = result.answer
                        state.response = result.answer

    async def _verify(self, state: RunState) -> RunState:
        with state.trace.span("verification"):
            outcome = await self._verifier.verify(
                state.query.text, state.passages, state.primary_answer
            )
        state.verification = outcome.result
        state.should_reconcile = outcome.should_reconcile
        state.confidence = (
            self._settings.agree_confidence
            if outcome.result.agrees
            else self._settings.disagree_confidence
        )

        log_verification_metrics(
            state.trace.trace_id,
            model=outcome.result.model,
            agrees=outcome.result.agrees,
            should_reconcile=outcome.should_reconcile,
        )
        return state

    async def _reconcile(self, state: RunState) -> RunState:
        with state.trace.span("reconciliation"):
            outcome = await self._reconciler.reconcile(
                state.query.text, state.passages, state.primary_answer, state.verification
            )
        state.reconciliation = outcome.result
        state.confidence = outcome.confidence
        if state.corrected:
            state.response = outcome.final_answer
        return state

    # --- Terminal payload -------------------------------------------------

    def _build_done(self, state: RunState) -> DoneData:
        return DoneData(
            response=state.response,
            citations=state.citations,
            intent=state.intent.value,
            model_used=self._generator.model,
            verification=state.verification,
            reconciliation=state.reconciliation,
            confidence=state.confidence,
            latency_ms=round(state.trace.elapsed_ms, 2),
        )

    @staticmethod
    def _log_summary(state: RunState, outcome: str) -> None:
        log_run_metrics(
            state.trace.trace_id,
            tier=state.query.tier.value,
            intent=state.intent.value if state.intent else "unknown",
            outcome=outcome,
            latency_ms=state.trace.elapsed_ms,
            stage_timings=state.trace.stage_timings(),
        )
