"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API Keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""

    # Provider clients (timeouts and retries live here, not in the pipeline)
    llm_timeout_seconds: float = 60.0
    llm_max_retries: int = 2

    # Router
    router_provider: str = "openai"
    router_model: str = "gpt-4o-mini"
    router_history_turns: int = 4

    # Generator
    generator_provider: str = "openai"
    generator_model: str = "gpt-4o-mini"
    generator_temperature: float = 0.7
    generator_max_tokens: int = 2048
    conversational_history_messages: int = 6

    # Reranker
    reranker_provider: str = "openai"
    reranker_model: str = "gpt-4o-mini"
    rerank_keep: int = 5
    rerank_max_chars: int = 500
    rerank_neutral_score: int = 5
    rerank_concurrency: int = 8

    # Verifier
    verifier_provider: str = "anthropic"
    verifier_model: str = "claude-haiku-4-5"
    verifier_max_tokens: int = 1024
    reconcile_confidence_threshold: float = 0.7
    agree_confidence: float = 0.95
    disagree_confidence: float = 0.75

    # Reconciler
    reconciler_provider: str = "openai"
    reconciler_model: str = "gpt-4o"
    reconciler_max_tokens: int = 2048
    reconcile_fallback_confidence: float = 0.5

    # Retrieval
    retrieval_limit: int = 20
    excerpt_chars: int = 200
    history_window: int = 20

    # Embedding
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_batch_size: int = 100

    # Storage paths
    passage_db_path: str = "data/passages.db"
    faiss_index_path: str = "data/faiss_index"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"

    model_config = {"env_file": ".env", "env_prefix": "DOCQA_"}
