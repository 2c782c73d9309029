"""LLM-based query intent routing."""

from __future__ import annotations

from docqa_engine.generation.prompt_templates import ROUTER_SYSTEM, format_history
from docqa_engine.models.domain import ChatTurn, Intent
from docqa_engine.observability.logger import get_logger
from docqa_engine.protocols.llm import LLMProvider

logger = get_logger("router")

_VALID_INTENTS = {i.value: i for i in Intent}


class QueryRouter:
    def __init__(self, llm: LLMProvider, history_turns: int = 4) -> None:
        self._llm = llm
        self._history_turns = history_turns

    def build_prompt(self, query: str, history: list[ChatTurn] | tuple[ChatTurn, ...]) -> str:
        recent = list(history)[-self._history_turns :] if self._history_turns > 0 else []
        context = format_history(recent)
        if context:
            return f"Recent conversation:\n{context}\n\nCurrent query: {query}"
        return f"Query: {query}"

    async def classify(
        self, query: str, history: list[ChatTurn] | tuple[ChatTurn, ...] = ()
    ) -> Intent:
        """Classify ``query``; model errors propagate to the caller."""
        raw = await self._llm.generate(
            self.build_prompt(query, history), system=ROUTER_SYSTEM, temperature=0.0, max_tokens=16
        )
        label = raw.strip().lower()
        intent = _VALID_INTENTS.get(label)
        if intent is None:
            logger.warning("router_label_corrected", raw=raw[:50])
            intent = Intent.NEEDS_RETRIEVAL

        logger.info("query_routed", intent=intent.value, history_turns=len(history))
        return intent
