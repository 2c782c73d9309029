"""Custom exception hierarchy for the document Q&A engine."""


class DocQAError(Exception):
    """Base exception for all docqa engine errors."""


class EmbeddingError(DocQAError):
    """Error generating embeddings."""


class RetrievalError(DocQAError):
    """Error searching the passage index."""


class GenerationError(DocQAError):
    """Error calling a language model."""


class ConfigurationError(DocQAError):
    """Error in system configuration."""


class PipelineRunError(DocQAError):
    """A pipeline run ended with an error event."""

    def __init__(self, message: str, latency_ms: float) -> None:
        super().__init__(message)
        self.latency_ms = latency_ms
