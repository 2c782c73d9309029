"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from docqa_engine.config.settings import Settings
from docqa_engine.pipeline.answer_pipeline import AnswerPipeline
from docqa_engine.search.faiss_store import FAISSPassageIndex
from docqa_engine.search.sqlite_passage_store import SQLitePassageStore


def get_answer_pipeline(request: Request) -> AnswerPipeline:
    return request.app.state.answer_pipeline


def get_passage_store(request: Request) -> SQLitePassageStore:
    return request.app.state.passage_store


def get_passage_index(request: Request) -> FAISSPassageIndex:
    return request.app.state.passage_index


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
