"""Tests for query intent routing."""

from __future__ import annotations

import pytest

from conftest import FakeLLM
from docqa_engine.exceptions import GenerationError
from docqa_engine.models.domain import ChatTurn, Intent
from docqa_engine.routing.router import QueryRouter


@pytest.mark.parametrize(
    "reply,expected",
    [
        ("needs_retrieval", Intent.NEEDS_RETRIEVAL),
        ("  Conversational\n", Intent.CONVERSATIONAL),
        ("OUT_OF_SCOPE", Intent.OUT_OF_SCOPE),
    ],
)
async def test_classify_normalises_reply(reply, expected):
    router = QueryRouter(FakeLLM(reply=reply))
    assert await router.classify("What is the notice period?") == expected


async def test_unknown_label_corrected_to_retrieval():
    router = QueryRouter(FakeLLM(reply="I think this needs documents"))
    assert await router.classify("What is the notice period?") == Intent.NEEDS_RETRIEVAL


async def test_classify_uses_temperature_zero():
    llm = FakeLLM(reply="conversational")
    await QueryRouter(llm).classify("hi")
    assert llm.calls[0]["temperature"] == 0.0


async def test_model_error_propagates():
    router = QueryRouter(FakeLLM(error=GenerationError("down")))
    with pytest.raises(GenerationError):
        await router.classify("hello")


def test_prompt_without_history():
    router = QueryRouter(FakeLLM())
    assert router.build_prompt("Summarize it", ()) == "Query: Summarize it"


def test_prompt_keeps_last_four_turns():
    history = [ChatTurn(role="user" if i % 2 == 0 else "assistant", content=f"m{i}") for i in range(6)]
    prompt = QueryRouter(FakeLLM(), history_turns=4).build_prompt("and then?", history)

    assert prompt.startswith("Recent conversation:\n")
    assert "m0" not in prompt and "m1" not in prompt
    assert "user: m2\nassistant: m3\nuser: m4\nassistant: m5" in prompt
    assert prompt.endswith("Current query: and then?")
