"""Question answering endpoints: SSE stream and blocking JSON."""

from __future__ import annotations

from contextlib import aclosing

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from docqa_engine.api.dependencies import get_answer_pipeline, get_settings
from docqa_engine.config.settings import Settings
from docqa_engine.exceptions import PipelineRunError
from docqa_engine.models.domain import ChatTurn, Query
from docqa_engine.models.schemas import AskRequest
from docqa_engine.observability.logger import get_logger
from docqa_engine.pipeline.answer_pipeline import AnswerPipeline
from docqa_engine.pipeline.events import to_sse

logger = get_logger("routes_ask")

router = APIRouter()


def to_query(request: AskRequest, history_window: int = 20) -> Query:
    """System turns are dropped; only the last ``history_window`` turns are kept."""
    turns = [
        ChatTurn(role=t.role, content=t.content) for t in request.history if t.role != "system"
    ]
    if history_window > 0:
        turns = turns[-history_window:]
    else:
        turns = []
    return Query(
        text=request.query,
        conversation_id=request.conversation_id,
        document_ids=tuple(request.document_ids),
        history=tuple(turns),
        tier=request.response_mode,
    )


@router.post("/ask/stream")
async def ask_stream(
    request: AskRequest,
    pipeline: AnswerPipeline = Depends(get_answer_pipeline),
    settings: Settings = Depends(get_settings),
):
    """Stream pipeline events as Server-Sent Events."""
    query = to_query(request, settings.history_window)

    async def event_generator():
        async with aclosing(pipeline.stream(query)) as events:
            async for event in events:
                yield to_sse(event)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/ask")
async def ask(
    request: AskRequest,
    pipeline: AnswerPipeline = Depends(get_answer_pipeline),
    settings: Settings = Depends(get_settings),
) -> dict:
    query = to_query(request, settings.history_window)
    try:
        done = await pipeline.run(query)
    except PipelineRunError as e:
        logger.warning("ask_failed", error=str(e), latency_ms=e.latency_ms)
        raise HTTPException(status_code=502, detail=str(e))
    return done.wire()
