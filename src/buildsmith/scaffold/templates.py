"""``{variable}`` interpolation for scaffold files and its inverse.

Only names passed in ``variables`` are substituted, so braces that belong to
JSON, CSS or JSX survive rendering untouched. Values are escaped for the
target file type (JSON string bodies, HTML text) and unescaped again by
:func:`extract_variables`.
"""
from __future__ import annotations

import html
import json
import re
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

Codec = Tuple[Callable[[str], str], Callable[[str], str]]


def _json_encode(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)[1:-1]


def _json_decode(value: str) -> str:
    return json.loads(f'"{value}"')


def _html_encode(value: str) -> str:
    return html.escape(value, quote=True)


def _identity(value: str) -> str:
    return value


def _jsx_encode(value: str) -> str:
    return html.escape(value, quote=True).replace("{", "&#123;").replace("}", "&#125;")


CODECS: Dict[str, Codec] = {
    ".json": (_json_encode, _json_decode),
    ".html": (_html_encode, html.unescape),
    ".tsx": (_jsx_encode, html.unescape),
    ".jsx": (_jsx_encode, html.unescape),
}


def codec_for(path: str) -> Codec:
    for suffix, codec in CODECS.items():
        if path.endswith(suffix):
            return codec
    return (_identity, _identity)


def declared_variables(template: str, known: Iterable[str] | None = None) -> List[str]:
    """Names of the placeholders in ``template`` in first-use order."""

    allowed = set(known) if known is not None else None
    names: List[str] = []
    for name in _PLACEHOLDER.findall(template):
        if (allowed is None or name in allowed) and name not in names:
            names.append(name)
    return names


def render_template(
    template: str,
    variables: Mapping[str, str],
    *,
    path: str = "",
    raw: Iterable[str] = (),
) -> str:
    """Substitute ``variables`` into ``template``; names in ``raw`` skip escaping."""

    encode, _ = codec_for(path)
    unescaped = set(raw)

    def _substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        if name in unescaped:
            return str(variables[name])
        return encode(str(variables[name]))

    return _PLACEHOLDER.sub(_substitute, template)


def extract_variables(
    template: str,
    rendered: str,
    names: Iterable[str],
    *,
    path: str = "",
) -> Optional[Dict[str, str]]:
    """Recover the values of ``names`` from a file rendered from ``template``.

    Returns ``None`` when ``rendered`` does not have the template's shape.
    """

    wanted = set(names)
    _, decode = codec_for(path)
    pattern: List[str] = []
    seen: set[str] = set()
    position = 0
    for match in _PLACEHOLDER.finditer(template):
        name = match.group(1)
        if name not in wanted:
            continue
        pattern.append(re.escape(template[position : match.start()]))
        if name in seen:
            pattern.append(f"(?P={name})")
        else:
            pattern.append(f"(?P<{name}>.*?)")
            seen.add(name)
        position = match.end()
    pattern.append(re.escape(template[position:]))

    found = re.fullmatch("".join(pattern), rendered, re.DOTALL)
    if found is None:
        return None
    return {name: decode(value) for name, value in found.groupdict().items()}


def slugify(value: str) -> str:
    """npm-compatible package name for a human project name."""

    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "generated-app"


__all__ = [
    "declared_variables",
    "render_template",
    "extract_variables",
    "codec_for",
    "slugify",
]
