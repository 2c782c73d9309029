"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from docqa_engine.api.middleware import RequestTimingMiddleware
from docqa_engine.api.routes_ask import router as ask_router
from docqa_engine.api.routes_health import router as health_router
from docqa_engine.config.settings import Settings
from docqa_engine.embeddings.openai_embedder import OpenAIEmbedder
from docqa_engine.generation.answer_generator import AnswerGenerator
from docqa_engine.llm.factory import create_provider
from docqa_engine.observability.logger import get_logger, setup_logging
from docqa_engine.pipeline.answer_pipeline import AnswerPipeline
from docqa_engine.retrieval.reranker_llm import LLMReranker
from docqa_engine.retrieval.retriever import PassageRetriever
from docqa_engine.routing.router import QueryRouter
from docqa_engine.search.faiss_store import FAISSPassageIndex
from docqa_engine.search.passage_search import StoredPassageSearch
from docqa_engine.search.sqlite_passage_store import SQLitePassageStore
from docqa_engine.verification.cross_check import AnswerVerifier
from docqa_engine.verification.reconciler import AnswerReconciler

logger = get_logger("app")


def build_pipeline(
    settings: Settings, retriever: PassageRetriever
) -> AnswerPipeline:
    """Wire the model-backed stages; each role gets its own provider instance."""
    router = QueryRouter(
        llm=create_provider(settings.router_provider, settings.router_model, settings),
        history_turns=settings.router_history_turns,
    )
    reranker = LLMReranker(
        llm=create_provider(settings.reranker_provider, settings.reranker_model, settings),
        max_chars=settings.rerank_max_chars,
        neutral_score=settings.rerank_neutral_score,
        concurrency=settings.rerank_concurrency,
    )
    generator = AnswerGenerator(
        llm=create_provider(settings.generator_provider, settings.generator_model, settings),
        temperature=settings.generator_temperature,
        max_tokens=settings.generator_max_tokens,
        history_messages=settings.conversational_history_messages,
        excerpt_chars=settings.excerpt_chars,
    )
    verifier = AnswerVerifier(
        llm=create_provider(settings.verifier_provider, settings.verifier_model, settings),
        reconcile_threshold=settings.reconcile_confidence_threshold,
        max_tokens=settings.verifier_max_tokens,
    )
    reconciler = AnswerReconciler(
        llm=create_provider(settings.reconciler_provider, settings.reconciler_model, settings),
        fallback_confidence=settings.reconcile_fallback_confidence,
        max_tokens=settings.reconciler_max_tokens,
    )
    return AnswerPipeline(
        router=router,
        retriever=retriever,
        reranker=reranker,
        generator=generator,
        verifier=verifier,
        reconciler=reconciler,
        settings=settings,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()
    setup_logging(settings.log_level, settings.log_format)

    Path(settings.passage_db_path).parent.mkdir(parents=True, exist_ok=True)

    # Storage
    passage_store = SQLitePassageStore(settings.passage_db_path)
    await passage_store.initialize()
    passage_index = FAISSPassageIndex(
        dimensions=settings.embedding_dimensions,
        index_path=settings.faiss_index_path,
    )

    # Retrieval
    embedder = OpenAIEmbedder(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        batch_size=settings.embedding_batch_size,
        dimensions=settings.embedding_dimensions,
    )
    retriever = PassageRetriever(
        embedder=embedder,
        search=StoredPassageSearch(index=passage_index, store=passage_store),
    )

    app.state.answer_pipeline = build_pipeline(settings, retriever)
    app.state.passage_store = passage_store
    app.state.passage_index = passage_index
    app.state.settings = settings

    logger.info(
        "startup_complete",
        documents=await passage_store.count_documents(),
        passages=await passage_store.count_passages(),
        index_size=passage_index.size,
    )

    yield

    logger.info("shutdown_complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title="DocQA Engine",
        version="1.0.0",
        description="Streaming multi-model document Q&A",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(ask_router, tags=["ask"])
    return app
