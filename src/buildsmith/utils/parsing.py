"""Parse-or-recover boundary for structured data returned by the AI service.

Everything that turns model text into data goes through this module. Callers
receive one of three outcomes and never see a ``json.JSONDecodeError``:

* :class:`Ok` - the text was valid JSON of the expected shape.
* :class:`Recovered` - heuristics were needed; ``warnings`` lists which.
* :class:`Failed` - nothing usable could be extracted; ``reason`` says why.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, TypeVar, Union

from buildsmith.artifacts import ArtifactSet

T = TypeVar("T")

_FENCE_PATTERN = re.compile(r"```[\w+-]*[ \t]*\n(.*?)```", re.DOTALL)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_CHATTER_LINE = re.compile(
    r"^\s*(here(?:'s| is| are)\b|below is\b|this (?:file|component|code)\b|i(?:'ve| have) )",
    re.IGNORECASE,
)
_SMART_QUOTES = {"“": '"', "”": '"', "‘": "'", "’": "'"}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Recovered(Generic[T]):
    value: T
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    reason: str

    @property
    def ok(self) -> bool:
        return False


ParseOutcome = Union[Ok[T], Recovered[T], Failed]


def strip_code_fences(text: str) -> str:
    """Return the largest fenced block in ``text`` or ``text`` unchanged."""

    blocks = _FENCE_PATTERN.findall(text or "")
    if blocks:
        return max(blocks, key=len)
    stripped = (text or "").strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
    if stripped.endswith("```"):
        stripped = stripped[:-3]
    return stripped


def clean_code_response(text: str) -> str:
    """Strip markdown fences and conversational lead-in/trailer lines."""

    body = strip_code_fences(text)
    lines = body.strip("\n").splitlines()
    while lines and (_CHATTER_LINE.match(lines[0]) or not lines[0].strip()):
        lines.pop(0)
    while lines and (_CHATTER_LINE.match(lines[-1]) or not lines[-1].strip()):
        lines.pop()
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def _balanced_span(text: str) -> str | None:
    """Return the first balanced ``{...}`` or ``[...]`` span, string-aware."""

    start = None
    for index, char in enumerate(text):
        if char in "{[":
            start = index
            break
    if start is None:
        return None
    stack: List[str] = []
    in_string = False
    escaped = False
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
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]":
            if not stack or stack.pop() != char:
                return None
            if not stack:
                return text[start : index + 1]
    return None


def recover_json(text: str) -> ParseOutcome[Any]:
    if not text or not text.strip():
        return Failed("empty response")
    try:
        return Ok(json.loads(text))
    except json.JSONDecodeError:
        pass

    warnings: List[str] = []
    candidate = text
    if "```" in candidate:
        candidate = strip_code_fences(candidate)
        warnings.append("removed markdown code fences")
    for smart, plain in _SMART_QUOTES.items():
        if smart in candidate:
            candidate = candidate.replace(smart, plain)
            if "replaced typographic quotes" not in warnings:
                warnings.append("replaced typographic quotes")

    span = _balanced_span(candidate)
    if span is None:
        return Failed("no JSON object or array found")
    if span.strip() != candidate.strip():
        warnings.append("discarded text around the JSON payload")
    candidate = span

    try:
        return Recovered(json.loads(candidate), warnings)
    except json.JSONDecodeError:
        pass

    repaired = _TRAILING_COMMA.sub(r"\1", candidate)
    if repaired != candidate:
        warnings.append("removed trailing commas")
    try:
        return Recovered(json.loads(repaired), warnings)
    except json.JSONDecodeError as exc:
        return Failed(f"invalid JSON: {exc.msg} at line {exc.lineno} column {exc.colno}")


def _with_value(outcome: ParseOutcome[Any], convert: Callable[[Any], Any]) -> ParseOutcome[Any]:
    if isinstance(outcome, Failed):
        return outcome
    try:
        value = convert(outcome.value)
    except (TypeError, ValueError) as exc:
        return Failed(str(exc))
    if isinstance(outcome, Recovered):
        return Recovered(value, list(outcome.warnings))
    return Ok(value)


def parse_json_object(text: str) -> ParseOutcome[Dict[str, Any]]:
    def _require_object(value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise TypeError(f"expected a JSON object, got {type(value).__name__}")
        return value

    return _with_value(recover_json(text), _require_object)


def _artifact_set_from(value: Any) -> ArtifactSet:
    if isinstance(value, dict) and "files" in value:
        value = value["files"]
    pairs: List[tuple[str, str]] = []
    if isinstance(value, dict):
        pairs = list(value.items())
    elif isinstance(value, list):
        for entry in value:
            if not isinstance(entry, dict) or "path" not in entry:
                raise ValueError("file entries need a 'path' and 'content'")
            pairs.append((entry["path"], entry.get("content", "")))
    else:
        raise TypeError(f"expected files as an object or list, got {type(value).__name__}")
    for path, content in pairs:
        if not isinstance(path, str) or not isinstance(content, str):
            raise ValueError(f"file {path!r} must map a string path to string content")
    return ArtifactSet(pairs)


def parse_artifact_payload(text: str) -> ParseOutcome[ArtifactSet]:
    """Parse ``{"files": [...]}``, ``{"files": {...}}`` or ``{path: content}``."""

    return _with_value(recover_json(text), _artifact_set_from)


__all__ = [
    "Ok",
    "Recovered",
    "Failed",
    "ParseOutcome",
    "strip_code_fences",
    "clean_code_response",
    "recover_json",
    "parse_json_object",
    "parse_artifact_payload",
]
