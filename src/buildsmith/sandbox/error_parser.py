"""Turn raw build output into structured :class:`BuildError` records."""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from buildsmith.sandbox.models import BuildError, ErrorKind

_ANSI = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
_FILE = re.compile(
    r"((?:[\w.@-]+/)*[\w.@-]+\.(?:tsx|ts|jsx|js|mjs|cjs|css|html|json|vue|svelte))\b"
    r"(?:(?::(\d+)(?::(\d+))?)|(?:\((\d+),(\d+)\)))?"
)
_LINE = re.compile(r"\bline[:\s]+(\d+)", re.IGNORECASE)
_COLUMN = re.compile(r"\bcol(?:umn)?[:\s]+(\d+)", re.IGNORECASE)
_MESSAGE = re.compile(r"error[:\s\]]+(.+)", re.IGNORECASE)
# "error" as a word or a suffix like SyntaxError, never inside a file path or name.
_MARKER = re.compile(r"(?<![\w/.\\-])\w*errors?(?=[:\s\]]|$)|failed to resolve|could not resolve", re.IGNORECASE)
_NO_ERRORS = re.compile(r"\b0 errors?\b", re.IGNORECASE)

_KIND_KEYWORDS: Tuple[Tuple[ErrorKind, Tuple[str, ...]], ...] = (
    ("syntax", ("syntax", "unexpected token", "unterminated", "parse error")),
    ("dependency", ("cannot find module", "module not found", "failed to resolve", "could not resolve")),
    ("runtime", ("referenceerror", "typeerror", "rangeerror")),
)

LOOKAHEAD_LINES = 3


def classify(text: str) -> ErrorKind:
    lowered = text.lower()
    for kind, keywords in _KIND_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return kind
    return "build"


def _find_file(text: str) -> Optional[Tuple[str, Optional[int], Optional[int]]]:
    matches = list(_FILE.finditer(text))
    if not matches:
        return None
    preferred = [m for m in matches if "node_modules/" not in m.group(1)] or matches
    match = preferred[0]
    line = match.group(2) or match.group(4)
    column = match.group(3) or match.group(5)
    return match.group(1), int(line) if line else None, int(column) if column else None


def parse_error_line(text: str, context: Iterable[str] = ()) -> BuildError:
    """Parse one error line; ``context`` lines are searched for a location."""

    located = _find_file(text)
    if located is None:
        for extra in context:
            located = _find_file(extra)
            if located is not None:
                break
    file, line, column = located if located is not None else ("unknown", None, None)

    line_match = _LINE.search(text)
    column_match = _COLUMN.search(text)
    if line_match:
        line = int(line_match.group(1))
    if column_match:
        column = int(column_match.group(1))

    message_match = _MESSAGE.search(text)
    message = (message_match.group(1) if message_match else text).strip()
    return BuildError(file=file, line=line, column=column, message=message or text.strip(), kind=classify(text))


def parse_build_errors(output: str) -> List[BuildError]:
    lines = [_ANSI.sub("", raw).rstrip() for raw in (output or "").splitlines()]
    errors: List[BuildError] = []
    seen = set()
    for index, text in enumerate(lines):
        if not text.strip() or not _MARKER.search(text) or _NO_ERRORS.search(text):
            continue
        context = lines[index + 1 : index + 1 + LOOKAHEAD_LINES]
        error = parse_error_line(text, context)
        key = (error.file, error.line, error.message)
        if key in seen:
            continue
        seen.add(key)
        errors.append(error)
    return errors


def summarize_failure(output: str) -> BuildError:
    """Fallback error for a failed build whose output names no error line."""

    lines = [_ANSI.sub("", raw).strip() for raw in (output or "").splitlines()]
    last = next((text for text in reversed(lines) if text), "Build failed")
    return BuildError(file="unknown", message=last, kind=classify(last))


__all__ = ["classify", "parse_build_errors", "parse_error_line", "summarize_failure"]
