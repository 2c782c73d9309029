"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from docqa_engine.api.dependencies import get_passage_index, get_passage_store
from docqa_engine.models.schemas import HealthResponse
from docqa_engine.search.faiss_store import FAISSPassageIndex
from docqa_engine.search.sqlite_passage_store import SQLitePassageStore

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    store: SQLitePassageStore = Depends(get_passage_store),
    index: FAISSPassageIndex = Depends(get_passage_index),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        document_count=await store.count_documents(),
        passage_count=await store.count_passages(),
        index_size=index.size,
    )
