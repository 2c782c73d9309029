"""Extract a JSON object from free-text model output, with a safe fallback."""

from __future__ import annotations

import json
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from docqa_engine.observability.logger import get_logger

logger = get_logger("structured_output")

T = TypeVar("T", bound=BaseModel)

_decoder = json.JSONDecoder()


def _strip_code_fences(text: str) -> str:
    lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
    return "\n".join(lines)


def extract_json_object(raw: str) -> dict | None:
    """Return the first well-formed JSON object embedded in ``raw``.

    Handles markdown code fences and prose before or after the object.
    Returns None when no object can be decoded.
    """
    if not raw:
        return None

    text = _strip_code_fences(raw.strip())
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    start = text.find("{")
    while start != -1:
        try:
            data, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(data, dict):
            return data
        start = text.find("{", start + 1)
    return None


def parse_structured(raw: str, schema: type[T], default: T | None) -> T | None:
    """Validate the embedded JSON object against ``schema``.

    Returns ``default`` (the same object) when nothing parses or the object
    does not fit the schema, so callers can detect the fallback with ``is``.
    """
    data = extract_json_object(raw)
    if data is None:
        logger.warning("structured_output_missing", schema=schema.__name__, raw_len=len(raw or ""))
        return default
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.warning("structured_output_invalid", schema=schema.__name__, errors=e.error_count())
        return default
