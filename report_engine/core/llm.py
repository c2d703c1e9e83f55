"""Helpers for turning raw LLM text into JSON objects."""

import json
import re
from collections.abc import Callable, Iterator
from typing import Any

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_DUPLICATE_COMMA_RE = re.compile(r",(?:\s*,)+")
_SINGLE_QUOTED_KEY_RE = re.compile(r"([{,]\s*)'([^'\"\r\n]+?)'\s*:")
_UNQUOTED_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z0-9_\-]+)\s*:")
_PROPERTY_AT_RE = re.compile(r"(\s*)'?([\w\-]+)'?(\s*:)")
_SMART_DOUBLE_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})
_VALUE_STARTS = ('"', "{", "[")
_MAX_POSITION_REPAIRS = 8


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = _FENCE_RE.search(cleaned)
    if fence_match:
        return fence_match.group(1).strip()

    # Fallback: strip unterminated leading/trailing fences
    if cleaned.lower().startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def iter_balanced_objects(text: str) -> Iterator[str]:
    """
    Yield every balanced top-level ``{...}`` span in order of appearance.

    Braces inside JSON string literals are ignored, so prose such as
    ``use {name} here`` followed by a real object still yields the object.
    Objects nested inside a yielded span are not yielded separately, and an
    unterminated object is skipped.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    end = index
                    break
        if end == -1:
            # Unterminated from here; a later brace may still open a real object
            start = text.find("{", start + 1)
            continue
        yield text[start : end + 1]
        start = text.find("{", end + 1)


def _map_outside_strings(text: str, transform: Callable[[str], str]) -> str:
    """Apply ``transform`` to the parts of ``text`` outside double-quoted strings."""
    parts: list[str] = []
    start = 0
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
                parts.append(text[start : index + 1])
                start = index + 1
        elif char == '"':
            parts.append(transform(text[start:index]))
            start = index
            in_string = True
    tail = text[start:]
    parts.append(tail if in_string else transform(tail))
    return "".join(parts)


def _strip_trailing_commas(text: str) -> str:
    return _map_outside_strings(text, lambda chunk: _TRAILING_COMMA_RE.sub(r"\1", chunk))


def _collapse_duplicate_commas(text: str) -> str:
    return _map_outside_strings(text, lambda chunk: _DUPLICATE_COMMA_RE.sub(",", chunk))


def _quote_single_quoted_key(match: re.Match) -> str:
    key = match.group(2).replace("\\", "\\\\")
    return f'{match.group(1)}"{key}":'


def _quote_keys(text: str) -> str:
    """Turn ``'key':`` and ``key:`` into ``"key":``."""

    def quote(chunk: str) -> str:
        chunk = _SINGLE_QUOTED_KEY_RE.sub(_quote_single_quoted_key, chunk)
        return _UNQUOTED_KEY_RE.sub(r'\1"\2":', chunk)

    return _map_outside_strings(text, quote)


def _next_significant(text: str, index: int) -> str:
    while index < len(text) and text[index].isspace():
        index += 1
    return text[index] if index < len(text) else ""


def _insert_missing_commas(text: str) -> str:
    """Insert commas between adjacent values such as ``"a" "b"`` or ``} {``."""
    out: list[str] = []
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        out.append(char)
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
                if _next_significant(text, index + 1) in _VALUE_STARTS:
                    out.append(",")
            continue
        if char == '"':
            in_string = True
        elif char in "}]" and _next_significant(text, index + 1) in _VALUE_STARTS:
            out.append(",")
    return "".join(out)


_REPAIRS: tuple[Callable[[str], str], ...] = (
    _strip_trailing_commas,
    _collapse_duplicate_commas,
    _quote_keys,
    _insert_missing_commas,
)


def _repair_candidates(raw_output: str) -> Iterator[str]:
    """The raw output, then progressively more lenient versions of it."""
    # Scan the untouched text first: a fence inside a string value or an
    # example block before the real object must not hide a valid object
    yield raw_output.strip()

    cleaned = _strip_llm_fences(raw_output)
    yield cleaned
    yield _strip_trailing_commas(cleaned)

    repaired = cleaned.translate(_SMART_DOUBLE_QUOTES)
    yield repaired
    for repair in _REPAIRS:
        repaired = repair(repaired)
        yield repaired


def _repair_at_error(text: str, error: json.JSONDecodeError) -> str | None:
    """Patch ``text`` at the position the decoder stopped, when the fix is obvious."""
    position = error.pos
    if position <= 0 or position >= len(text):
        return None
    if error.msg.startswith("Expecting ',' delimiter"):
        return f"{text[:position]},{text[position:]}"
    if error.msg.startswith("Expecting property name"):
        match = _PROPERTY_AT_RE.match(text, position)
        if not match:
            return None
        return f'{text[:position]}{match.group(1)}"{match.group(2)}"{match.group(3)}{text[match.end():]}'
    return None


def _loads(candidate: str) -> Any:
    """json.loads with bare newlines allowed and a few positional repairs."""
    text = candidate
    for _ in range(_MAX_POSITION_REPAIRS):
        try:
            return json.loads(text, strict=False)
        except json.JSONDecodeError as e:
            repaired = _repair_at_error(text, e)
            if repaired is None:
                raise
            text = repaired
    return json.loads(text, strict=False)


def parse_llm_json_object(raw_output: str) -> dict[str, Any]:
    """
    Parse the first JSON object embedded in LLM output.

    Handles common LLM response quirks:
    - Markdown code fences (```json ... ```), including fences inside values
    - Prose before or after the object, including stray braces
    - Trailing or doubled commas, missing commas between values
    - Single-quoted or unquoted keys, typographic quotes
    - Bare newlines inside string values

    Args:
        raw_output: Raw string from LLM response

    Returns:
        Parsed dict

    Raises:
        ValueError: If no JSON object can be found
        json.JSONDecodeError: If every candidate object fails to parse
    """
    seen: set[str] = set()
    last_error: json.JSONDecodeError | None = None

    for text in _repair_candidates(raw_output):
        for candidate in iter_balanced_objects(text):
            if candidate in seen:
                continue
            seen.add(candidate)
            try:
                parsed = _loads(candidate)
            except json.JSONDecodeError as e:
                last_error = e
                continue
            if isinstance(parsed, dict):
                return parsed

    if last_error is not None:
        raise last_error
    raise ValueError("No JSON object found in LLM output")
