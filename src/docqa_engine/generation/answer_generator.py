"""Primary answer generation, blocking or streamed token by token."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass

from docqa_engine.generation.citations import build_citations
from docqa_engine.generation.prompt_templates import (
    CONVERSATIONAL_SYSTEM,
    OUT_OF_SCOPE_SYSTEM,
    QA_NO_CONTEXT_PROMPT,
    QA_PROMPT,
    QA_SYSTEM,
    format_context_block,
    format_history,
)
from docqa_engine.models.domain import ChatTurn, Intent, RetrievedPassage
from docqa_engine.models.schemas import Citation
from docqa_engine.observability.logger import get_logger
from docqa_engine.protocols.llm import LLMProvider

logger = get_logger("generation")


@dataclass
class PromptBundle:
    intent: Intent
    system: str
    user: str
    citations: list[Citation]


@dataclass
class GenerationResult:
    answer: str
    citations: list[Citation]
    model: str


class AnswerGenerator:
    def __init__(
        self,
        llm: LLMProvider,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        history_messages: int = 6,
        excerpt_chars: int = 200,
    ) -> None:
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._history_messages = history_messages
        self._excerpt_chars = excerpt_chars

    @property
    def model(self) -> str:
        return self._llm.model

    def build_prompt(
        self,
        query: str,
        intent: Intent,
        passages: list[RetrievedPassage],
        history: list[ChatTurn] | tuple[ChatTurn, ...] = (),
    ) -> PromptBundle:
        if intent == Intent.OUT_OF_SCOPE:
            return PromptBundle(intent=intent, system=OUT_OF_SCOPE_SYSTEM, user=query, citations=[])

        if intent == Intent.CONVERSATIONAL:
            recent = list(history)[-self._history_messages :] if self._history_messages > 0 else []
            context = format_history(recent)
            user = f"{context}\n\nuser: {query}" if context else query
            return PromptBundle(intent=intent, system=CONVERSATIONAL_SYSTEM, user=user, citations=[])

        if not passages:
            return PromptBundle(
                intent=intent,
                system=QA_SYSTEM, user=QA_NO_CONTEXT_PROMPT.format(query=query), citations=[]
            )

        return PromptBundle(
            intent=intent,
            system=QA_SYSTEM,
            user=QA_PROMPT.format(context_block=format_context_block(passages), query=query),
            citations=build_citations(passages, self._excerpt_chars),
        )

    async def generate(
        self,
        query: str,
        intent: Intent,
        passages: list[RetrievedPassage],
        history: list[ChatTurn] | tuple[ChatTurn, ...] = (),
    ) -> GenerationResult:
        bundle = self.build_prompt(query, intent, passages, history)
        answer = await self._llm.generate(
            bundle.user,
            system=bundle.system,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        logger.info(
            "generated_answer",
            intent=intent.value,
            answer_len=len(answer),
            citations=len(bundle.citations),
        )
        return GenerationResult(answer=answer, citations=bundle.citations, model=self.model)

    async def generate_stream(
        self,
        query: str,
        intent: Intent,
        passages: list[RetrievedPassage],
        history: list[ChatTurn] | tuple[ChatTurn, ...] = (),
    ) -> AsyncIterator[tuple[str | None, GenerationResult | None]]:
        """Yield (token, None) per fragment, then (None, GenerationResult) at end."""
        bundle = self.build_prompt(query, intent, passages, history)
        async with aclosing(self.stream_prompt(bundle)) as stream:
            async for item in stream:
                yield item

    async def stream_prompt(
        self, bundle: PromptBundle
    ) -> AsyncIterator[tuple[str | None, GenerationResult | None]]:
        """Stream an already assembled prompt; citations come from the bundle."""
        parts: list[str] = []
        stream = self._llm.generate_stream(
            bundle.user,
            system=bundle.system,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        async with aclosing(stream):
            async for token in stream:
                if not token:
                    continue
                parts.append(token)
                yield token, None

        answer = "".join(parts)
        logger.info(
            "generated_answer_stream",
            intent=bundle.intent.value,
            answer_len=len(answer),
            fragments=len(parts),
            citations=len(bundle.citations),
        )
        yield None, GenerationResult(answer=answer, citations=bundle.citations, model=self.model)
