"""Extract structured command suggestions from free-form model output.

Parsing runs in two stages: a bracket-balance scanner picks the most likely
JSON array out of surrounding prose and markdown fences, then a strict decoder
turns only that substring into suggestions. Neither stage raises.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ValidationError

from cmdsense.core.logging import logger, redact_sensitive
from cmdsense.suggestions.models import (
    DEFAULT_CONFIDENCE,
    CommandSuggestion,
    SuggestionSource,
)

MAX_SUGGESTIONS = 3

_JSON_FENCE_RE = re.compile(r"```json[^\n]*\n(.*?)```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE_RE = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)


def _fenced_regions(text: str) -> Iterator[str]:
    for match in _JSON_FENCE_RE.finditer(text):
        yield match.group(1)
    for match in _ANY_FENCE_RE.finditer(text):
        if "[" in match.group(1):
            yield match.group(1)
    yield text


def iter_bracket_spans(text: str) -> Iterator[str]:
    """Yield every balanced top-level ``[...]`` span in order of appearance.

    Brackets inside JSON string literals are ignored. An opening bracket that
    never balances is skipped and the scan resumes just after it.
    """
    start = text.find("[")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for i in range(start, len(text)):
            ch = text[i]
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
            elif ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end == -1:
            start = text.find("[", start + 1)
            continue
        yield text[start : end + 1]
        start = text.find("[", end + 1)


def _opens_object_array(span: str) -> bool:
    inner = span[1:].lstrip()
    return inner.startswith("{") or inner.startswith("]")


def find_json_array(text: str) -> str | None:
    """Locate the best JSON array candidate in free-form text.

    A ```json fenced block is preferred, then any other fenced block, then the
    whole text. Within a region the first span that opens an array of objects
    wins, falling back to the first balanced span.

    Returns:
        The candidate substring, or None when no balanced array exists.
    """
    for region in _fenced_regions(text):
        spans = list(iter_bracket_spans(region))
        if not spans:
            continue
        for span in spans:
            if _opens_object_array(span):
                return span
        return spans[0]
    return None


class _RawSuggestion(BaseModel):
    command: str
    reason: str
    source: Any = None
    confidence: Any = None


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, float(value)))


def decode_suggestions(candidate: str) -> list[CommandSuggestion]:
    """Strictly decode a JSON array substring into suggestions.

    Items missing ``command`` or ``reason`` (or with an empty command) are
    skipped; an unrecognized ``source`` falls back to generalContext.

    Returns:
        All well-formed suggestions in their original order, or an empty list
        when the substring is not a JSON array.
    """
    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError) as e:
        logger.debug(f"Suggestion JSON did not decode: {e}")
        return []

    if not isinstance(data, list):
        return []

    suggestions: list[CommandSuggestion] = []
    for item in data:
        try:
            raw = _RawSuggestion.model_validate(item, strict=True)
        except ValidationError:
            logger.debug(f"Skipping malformed suggestion: {redact_sensitive(repr(item))}")
            continue
        command = raw.command.strip()
        if not command:
            continue
        suggestions.append(
            CommandSuggestion(
                command=command,
                reason=raw.reason,
                confidence=_coerce_confidence(raw.confidence),
                source=SuggestionSource.from_tag(raw.source),
            )
        )
    return suggestions


def parse_suggestions(raw_text: str) -> list[CommandSuggestion]:
    """Turn raw model output into at most MAX_SUGGESTIONS suggestions.

    Order is preserved and no re-ranking happens here. Any failure yields an
    empty list.
    """
    candidate = find_json_array(raw_text)
    if candidate is None:
        logger.debug("No JSON array found in model output")
        return []
    return decode_suggestions(candidate)[:MAX_SUGGESTIONS]
