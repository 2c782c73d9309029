"""Promote retained passages to user-visible citations."""

from __future__ import annotations

from pydantic import ValidationError

from docqa_engine.config.constants import EXCERPT_SUFFIX
from docqa_engine.models.domain import RetrievedPassage
from docqa_engine.models.schemas import BoundingBox, Citation


def _bbox(metadata: dict) -> BoundingBox | None:
    raw = metadata.get("bbox")
    if not raw:
        return None
    try:
        return BoundingBox.model_validate(raw)
    except ValidationError:
        return None


def build_citation(rp: RetrievedPassage, excerpt_chars: int = 200) -> Citation:
    return Citation(
        document_id=rp.document.doc_id,
        document_name=rp.document.filename,
        chunk_id=rp.passage.passage_id,
        chunk_index=rp.passage.index,
        page_number=rp.passage.page_number,
        excerpt=rp.passage.text[:excerpt_chars] + EXCERPT_SUFFIX,
        relevance_score=rp.relevance,
        bbox=_bbox(rp.passage.metadata),
    )


def build_citations(passages: list[RetrievedPassage], excerpt_chars: int = 200) -> list[Citation]:
    """One citation per passage, in the same order the prompt numbers them."""
    return [build_citation(rp, excerpt_chars) for rp in passages]
