"""Recover a JSON object from a possibly noisy model response."""

import json
from typing import Any, Dict

from .errors import ParseError


def extract_json_object(raw: str) -> Dict[str, Any]:
    """
    Parse a model response into a JSON object.

    Tries a direct parse first. Models sometimes wrap the object in prose or
    markdown fences, so on failure the text between the first ``{`` and the
    last ``}`` (inclusive) is parsed instead.

    Raises:
        ParseError: If no JSON object can be located
    """
    if not raw or not raw.strip():
        raise ParseError("Empty model response")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ParseError("No JSON object found in model response")

    try:
        parsed = json.loads(raw[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in model response: {e}") from e

    if not isinstance(parsed, dict):
        raise ParseError(
            f"Model response is not a JSON object (got {type(parsed).__name__})"
        )
    return parsed
