"""LLM relevance reranker: scores passages 0-10 in parallel and keeps the top N."""

from __future__ import annotations

import asyncio
import re
from dataclasses import replace

from docqa_engine.generation.prompt_templates import RERANK_PROMPT, RERANK_SYSTEM
from docqa_engine.models.domain import RetrievedPassage
from docqa_engine.observability.logger import get_logger
from docqa_engine.protocols.llm import LLMProvider

logger = get_logger("reranker")

_LEADING_INT = re.compile(r"^\s*(-?\d+)")


def parse_relevance_score(raw: str, neutral: int = 5) -> int:
    """Leading integer of the reply clamped to 0..10, ``neutral`` if none."""
    match = _LEADING_INT.match(raw or "")
    if not match:
        return neutral
    return max(0, min(10, int(match.group(1))))


class LLMReranker:
    def __init__(
        self,
        llm: LLMProvider,
        max_chars: int = 500,
        neutral_score: int = 5,
        concurrency: int = 8,
    ) -> None:
        self._llm = llm
        self._max_chars = max_chars
        self._neutral = neutral_score
        self._concurrency = max(1, concurrency)

    async def rerank(
        self,
        query: str,
        passages: list[RetrievedPassage],
        keep: int = 5,
    ) -> list[RetrievedPassage]:
        if len(passages) <= keep:
            return passages

        semaphore = asyncio.Semaphore(self._concurrency)

        async def score_one(rp: RetrievedPassage) -> float:
            async with semaphore:
                return await self._score(query, rp.passage.text)

        scores = await asyncio.gather(*(score_one(rp) for rp in passages))

        # sorted() is stable, so ties keep retrieval order
        ranked = sorted(zip(passages, scores), key=lambda pair: pair[1], reverse=True)
        result = [replace(rp, rerank_score=float(score)) for rp, score in ranked[:keep]]

        logger.info(
            "reranked",
            input_count=len(passages),
            output_count=len(result),
            top_score=result[0].rerank_score if result else 0.0,
        )
        return result

    async def _score(self, query: str, text: str) -> int:
        prompt = RERANK_PROMPT.format(query=query, passage=text[: self._max_chars])
        try:
            raw = await self._llm.generate(prompt, system=RERANK_SYSTEM, temperature=0.0, max_tokens=8)
        except Exception as e:
            logger.warning("rerank_score_failed", error=str(e), fallback=self._neutral)
            return self._neutral
        return parse_relevance_score(raw, self._neutral)
