"""Decoding and validation of the model's comparison response.

Generative models asked for JSON do not always produce valid JSON; long
free-text fields often contain raw control characters or stray quotes. Strict
parsing is tried first. When it fails, a targeted scan pulls the two required
string fields out of the raw text without attempting to repair the rest.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..exceptions import DecodeError, StructuralError
from ..models import COMMENTARY_FIELD, RESULT_FIELDS, TABLE_FIELD, ComparisonResult

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\r\n\f\v"


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _read_quoted(text: str, pos: int) -> Optional[str]:
    """Read a quoted value whose opening quote is at pos.

    A backslash escapes the next character; the first unescaped quote ends the
    value. Returns the raw content between the quotes, or None if unterminated.
    """
    i = pos + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return text[pos + 1 : i]
        i += 1
    return None


def scan_string_field(text: str, key: str) -> Optional[str]:
    """Find the first `"key" : "value"` occurrence and return the raw value.

    Occurrences of the key that are not followed by a colon and a terminated
    quoted value are skipped.
    """
    needle = f'"{key}"'
    start = text.find(needle)
    while start != -1:
        pos = _skip_ws(text, start + len(needle))
        if pos < len(text) and text[pos] == ":":
            pos = _skip_ws(text, pos + 1)
            if pos < len(text) and text[pos] == '"':
                value = _read_quoted(text, pos)
                if value is not None:
                    return value
        start = text.find(needle, start + 1)
    return None


def unescape_recovered(value: str) -> str:
    # Only these two sequences are interpreted
    return value.replace("\\n", "\n").replace('\\"', '"')


def recover_fields(raw_text: str) -> Optional[Dict[str, str]]:
    commentary = scan_string_field(raw_text, COMMENTARY_FIELD)
    table = scan_string_field(raw_text, TABLE_FIELD)
    if not commentary or not table:
        return None
    return {
        COMMENTARY_FIELD: unescape_recovered(commentary),
        TABLE_FIELD: unescape_recovered(table),
    }


def decode_response(raw_text: str) -> Any:
    """Parse model output, falling back to the targeted field scan.

    Returns whatever strict JSON parsing yields (shape is checked by
    validate_result). Raises DecodeError carrying the raw text when neither
    path succeeds.
    """
    try:
        return json.loads(raw_text)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Initial JSON parse failed. Attempting targeted field recovery...")

    recovered = recover_fields(raw_text or "")
    if recovered is None:
        raise DecodeError("Could not recover the required fields from the malformed AI response.", raw_text)
    logger.info("Recovered both fields from malformed JSON response.")
    return recovered


def validate_result(value: Any) -> ComparisonResult:
    """Require exactly the two result fields, both strings."""
    if not isinstance(value, dict) or set(value) != set(RESULT_FIELDS):
        keys = sorted(value) if isinstance(value, dict) else type(value).__name__
        raise StructuralError(f"Invalid JSON structure after parsing. Expected keys {list(RESULT_FIELDS)}, got {keys}.")
    wrong = [k for k in RESULT_FIELDS if not isinstance(value[k], str)]
    if wrong:
        raise StructuralError(f"Invalid JSON structure after parsing. Required keys have wrong types: {wrong}")
    try:
        return ComparisonResult.model_validate(value)
    except ValidationError as exc:
        raise StructuralError(f"Invalid JSON structure after parsing. Required keys have wrong types: {exc}") from exc
