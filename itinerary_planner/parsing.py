"""Recover and sanity-check itinerary JSON from free-text model output.

Models asked for "ONLY JSON" still wrap it in markdown fences, append
commentary, or leave trailing commas behind. ``extract_json_object`` reduces
such text to the first complete JSON object; ``validate_itinerary_payload``
checks the handful of top-level fields the rest of the pipeline relies on.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict

from itinerary_planner.errors import ExtractionError, ValidationError
from itinerary_planner.settings import get_logger

logger = get_logger(__name__)

_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```$")

REQUIRED_FIELDS = {"title": str, "description": str, "budgetBreakdown": dict}


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def find_matching_brace(text: str, start: int) -> int:
    """Index of the ``}`` closing the ``{`` at ``start``, or -1.

    Braces inside double-quoted strings are ignored, honouring backslash
    escapes, so a title such as ``"Hills {and} falls"`` does not shift depth.
    """
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return idx
    return -1


def strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing ``}`` or ``]``."""
    out = []
    in_string = False
    escaped = False
    length = len(text)
    idx = 0
    while idx < length:
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == ",":
            lookahead = idx + 1
            while lookahead < length and text[lookahead].isspace():
                lookahead += 1
            if lookahead < length and text[lookahead] in "}]":
                idx += 1
                continue
        out.append(ch)
        idx += 1
    return "".join(out)


def extract_json_object(raw_text: str) -> Dict[str, Any]:
    """Return the first well-formed JSON object found in ``raw_text``.

    Raises ``ExtractionError`` when there is no object, when its braces never
    balance, or when the repaired slice still fails to decode.
    """
    if not isinstance(raw_text, str):
        raise ExtractionError("no JSON object found")

    logger.debug("Raw response length: %d", len(raw_text))
    cleaned = strip_code_fences(raw_text)

    first = cleaned.find("{")
    if first == -1:
        raise ExtractionError("no JSON object found")

    last = find_matching_brace(cleaned, first)
    if last == -1:
        raise ExtractionError("unbalanced JSON")

    candidate = strip_trailing_commas(cleaned[first:last + 1])
    try:
        # strict=False tolerates raw newlines/tabs inside string values
        return json.loads(candidate, strict=False)
    except json.JSONDecodeError as exc:
        raise ExtractionError(str(exc)) from exc


def validate_itinerary_payload(payload: Any) -> None:
    """Shallow structural check of a model-produced itinerary.

    Only the top-level fields are inspected; day and activity internals are
    passed through untouched.
    """
    if not isinstance(payload, dict):
        raise ValidationError("itinerary", "Itinerary payload must be a JSON object")

    for field, expected in REQUIRED_FIELDS.items():
        value = payload.get(field)
        if isinstance(value, str):
            value = value.strip()
        if not value:
            logger.warning("Missing required field: %s", field)
            raise ValidationError(field)
        if not isinstance(value, expected):
            logger.warning("Wrong type for field %s: %s", field, type(value).__name__)
            raise ValidationError(field, f"Invalid {field}: expected {expected.__name__}")

    days = payload.get("days")
    if not isinstance(days, list) or not days:
        logger.warning("Invalid or empty days array")
        raise ValidationError("days", "Invalid days array: expected a non-empty list")
