"""JSON recovery from free-form model output.

Models without constrained decoding answer with prose, markdown fences and,
for reasoning models, ``<think>`` blocks around the JSON we asked for. This
module finds the first top-level balanced ``{...}`` object that parses and
reports the outcome as an explicit ``JsonExtraction`` value rather than raising.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
_DANGLING_THINK_CLOSE = re.compile(r"^.*?</think>", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class JsonExtraction:
    """Outcome of scanning text for a JSON object.

    Exactly one of ``value`` and ``error`` is set.
    """

    value: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    source: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    @classmethod
    def success(cls, value: Dict[str, Any], source: str) -> "JsonExtraction":
        return cls(value=value, source=source)

    @classmethod
    def failure(cls, error: str) -> "JsonExtraction":
        return cls(error=error)


def strip_thinking(text: str) -> str:
    """Remove ``<think>...</think>`` blocks and any prefix ending in an unmatched ``</think>``."""
    text = _THINK_BLOCK.sub("", text)
    text = _DANGLING_THINK_CLOSE.sub("", text, count=1)
    return text.strip()


def _object_end(text: str, start: int) -> int:
    """Return the index of the brace closing the object opened at ``start``, or -1."""
    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
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
                return i
    return -1


def iter_balanced_objects(text: str) -> Iterator[str]:
    """Yield every top-level brace-balanced ``{...}`` substring, in order.

    Braces inside JSON strings (including escaped quotes) do not count. An
    opening brace that never closes is skipped and scanning resumes right
    after it, so a stray ``{`` in prose does not hide a later object.
    """
    pos = 0
    while True:
        start = text.find("{", pos)
        if start < 0:
            return
        end = _object_end(text, start)
        if end < 0:
            pos = start + 1
            continue
        yield text[start : end + 1]
        pos = end + 1


def extract_json_object(text: str) -> JsonExtraction:
    """Return the first balanced JSON object in ``text`` that parses to a dict.

    Thinking blocks are stripped first. When a candidate is not valid JSON, or
    is valid JSON that is not an object, scanning restarts one character after
    its opening brace.
    """
    if not text or not text.strip():
        return JsonExtraction.failure("empty response")
    cleaned = strip_thinking(text)
    seen = 0
    pos = 0
    while True:
        start = cleaned.find("{", pos)
        if start < 0:
            break
        pos = start + 1
        end = _object_end(cleaned, start)
        if end < 0:
            continue
        seen += 1
        candidate = cleaned[start : end + 1]
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return JsonExtraction.success(value, candidate)
    if seen == 0:
        return JsonExtraction.failure("no JSON object found in response")
    return JsonExtraction.failure(f"none of the {seen} JSON object candidate(s) could be parsed")
