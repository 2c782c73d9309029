"""Metric recording helpers for pipeline runs."""

from __future__ import annotations

from docqa_engine.observability.logger import get_logger

logger = get_logger("metrics")


def log_retrieval_metrics(
    trace_id: str,
    retrieved: int,
    kept: int,
    top_scores: list[float],
    unique_docs: int,
) -> None:
    logger.info(
        "retrieval_metrics",
        trace_id=trace_id,
        retrieved=retrieved,
        kept=kept,
        top_scores=[round(s, 4) for s in top_scores[:5]],
        unique_docs=unique_docs,
    )


def log_verification_metrics(
    trace_id: str,
    model: str,
    agrees: bool,
    should_reconcile: bool,
) -> None:
    logger.info(
        "verification_metrics",
        trace_id=trace_id,
        model=model,
        agrees=agrees,
        should_reconcile=should_reconcile,
    )


def log_run_metrics(
    trace_id: str,
    tier: str,
    intent: str,
    outcome: str,
    latency_ms: float,
    stage_timings: dict[str, float],
) -> None:
    logger.info(
        "run_metrics",
        trace_id=trace_id,
        tier=tier,
        intent=intent,
        outcome=outcome,
        latency_ms=round(latency_ms, 2),
        stages=stage_timings,
    )
