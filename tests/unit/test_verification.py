"""Tests for structured-output parsing, cross-checking and reconciliation."""

from __future__ import annotations

import pytest

from conftest import FakeLLM, arbitration, make_passages, verdict
from docqa_engine.config.constants import (
    RECONCILE_API_FAILED_NOTE,
    RECONCILE_PARSE_FAILED_NOTE,
    VERIFY_API_FAILED_NOTE,
    VERIFY_PARSE_FAILED_NOTE,
)
from docqa_engine.exceptions import GenerationError
from docqa_engine.models.schemas import VerificationResult
from docqa_engine.verification.cross_check import AnswerVerifier, VerifierReply
from docqa_engine.verification.reconciler import AnswerReconciler
from docqa_engine.verification.structured_output import extract_json_object, parse_structured

# --- structured output ---------------------------------------------------


@pytest.mark.parametrize(
    "raw",
    [
        '{"agrees": false, "confidence": 0.8}',
        '```json\n{"agrees": false, "confidence": 0.8}\n```',
        'Here is my verdict:\n{"agrees": false, "confidence": 0.8}\nHope that helps.',
        'Note {not json} then {"agrees": false, "confidence": 0.8}',
    ],
)
def test_extract_json_object(raw):
    assert extract_json_object(raw) == {"agrees": False, "confidence": 0.8}


@pytest.mark.parametrize("raw", ["", "no braces here", "[1, 2, 3]", '{"agrees": '])
def test_extract_json_object_none(raw):
    assert extract_json_object(raw) is None


def test_parse_structured_returns_default_on_schema_mismatch():
    default = VerifierReply(agrees=True)
    assert parse_structured('{"confidence": 0.2}', VerifierReply, default) is default


def test_parse_structured_validates():
    reply = parse_structured(verdict(False, 1.7, issues=None), VerifierReply, None)
    assert reply.agrees is False
    assert reply.confidence == 1.0
    assert reply.issues == []


# --- verifier ------------------------------------------------------------


async def test_verify_agreement():
    llm = FakeLLM(model="verifier", reply=verdict(True, 0.95, notes="Accurate."))
    outcome = await AnswerVerifier(llm).verify("q", make_passages(2), "answer")

    assert outcome.result.agrees is True
    assert outcome.result.model == "verifier"
    assert outcome.result.notes == "Accurate."
    assert outcome.should_reconcile is False
    assert "[Source 1] (contract.pdf, p.1):" in llm.calls[0]["prompt"]


async def test_verify_confident_disagreement_triggers_reconcile():
    llm = FakeLLM(reply=verdict(False, 0.9, notes="Wrong period.", issues=["says 60 days", "no source"]))
    outcome = await AnswerVerifier(llm, reconcile_threshold=0.7).verify("q", [], "answer")

    assert outcome.result.agrees is False
    assert outcome.result.notes == "Wrong period.\nIssues: says 60 days, no source"
    assert outcome.result.issues == ["says 60 days", "no source"]
    assert outcome.should_reconcile is True


@pytest.mark.parametrize("confidence", [0.7, 0.5])
async def test_verify_unconfident_disagreement_does_not_reconcile(confidence):
    llm = FakeLLM(reply=verdict(False, confidence))
    outcome = await AnswerVerifier(llm, reconcile_threshold=0.7).verify("q", [], "answer")
    assert outcome.result.agrees is False
    assert outcome.should_reconcile is False


async def test_verify_unparseable_assumes_agreement():
    outcome = await AnswerVerifier(FakeLLM(reply="Looks fine to me")).verify("q", [], "answer")
    assert outcome.result.agrees is True
    assert outcome.result.confidence == 0.5
    assert outcome.result.notes == VERIFY_PARSE_FAILED_NOTE
    assert outcome.should_reconcile is False


async def test_verify_api_error_passes_through():
    llm = FakeLLM(model="verifier", error=GenerationError("503"))
    outcome = await AnswerVerifier(llm).verify("q", [], "answer")
    assert outcome.result.agrees is True
    assert outcome.result.model == "verifier"
    assert outcome.result.notes == VERIFY_API_FAILED_NOTE
    assert outcome.should_reconcile is False


# --- reconciler ----------------------------------------------------------

_DISAGREEMENT = VerificationResult(model="verifier", agrees=False, notes="Wrong period.")


async def test_reconcile_corrected_answer():
    llm = FakeLLM(model="arbiter", reply=arbitration("verification", "It is 30 days.", 0.88))
    outcome = await AnswerReconciler(llm).reconcile("q", make_passages(1), "It is 60 days.", _DISAGREEMENT)

    assert outcome.final_answer == "It is 30 days."
    assert outcome.confidence == 0.88
    assert outcome.result.chosen == "verification"
    assert outcome.result.model == "arbiter"
    assert outcome.result.resolution == "Chose verification."
    assert llm.calls[0]["temperature"] == 0.0
    assert "Agrees: No" in llm.calls[0]["prompt"]
    assert "Notes: Wrong period." in llm.calls[0]["prompt"]


async def test_reconcile_empty_final_answer_falls_back_to_primary():
    llm = FakeLLM(reply=arbitration("synthesized", ""))
    outcome = await AnswerReconciler(llm).reconcile("q", [], "primary text", _DISAGREEMENT)
    assert outcome.final_answer == "primary text"
    assert outcome.result.final_answer == "primary text"


async def test_reconcile_choosing_primary_keeps_primary_text():
    llm = FakeLLM(reply=arbitration("primary", "Something else entirely.", 0.8))
    outcome = await AnswerReconciler(llm).reconcile("q", [], "primary text", _DISAGREEMENT)

    assert outcome.result.chosen == "primary"
    assert outcome.final_answer == "primary text"
    assert outcome.result.final_answer == "primary text"
    assert outcome.confidence == 0.8


async def test_reconcile_parse_failure():
    outcome = await AnswerReconciler(FakeLLM(reply="I pick A")).reconcile(
        "q", [], "primary text", _DISAGREEMENT
    )
    assert outcome.result.chosen == "primary"
    assert outcome.result.resolution == RECONCILE_PARSE_FAILED_NOTE
    assert outcome.final_answer == "primary text"
    assert outcome.confidence == 0.5


async def test_reconcile_api_error():
    outcome = await AnswerReconciler(FakeLLM(error=GenerationError("timeout"))).reconcile(
        "q", [], "primary text", _DISAGREEMENT
    )
    assert outcome.result.chosen == "primary"
    assert outcome.result.resolution == RECONCILE_API_FAILED_NOTE
    assert outcome.final_answer == "primary text"
    assert outcome.confidence == 0.5
