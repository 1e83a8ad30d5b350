"""In-memory representation of a generated project's files."""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple


def normalize_path(path: str) -> str:
    """Return ``path`` as a forward-slash relative path."""

    cleaned = str(path).replace("\\", "/").strip()
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    cleaned = cleaned.lstrip("/")
    if not cleaned:
        raise ValueError("Artifact path must not be empty")
    return cleaned


class ArtifactSet(Mapping[str, str]):
    """Ordered, read-only mapping of relative path to file content.

    Changes are whole-file only and always produce a new set, so a set handed
    to a reader (the quality validator, a sandbox mount) never changes under it.
    """

    def __init__(self, files: Mapping[str, str] | Iterable[Tuple[str, str]] | None = None) -> None:
        self._files: Dict[str, str] = {}
        items = files.items() if isinstance(files, Mapping) else (files or [])
        for path, content in items:
            self._files[normalize_path(path)] = str(content)

    def __getitem__(self, path: str) -> str:
        return self._files[normalize_path(path)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        try:
            return normalize_path(path) in self._files
        except ValueError:
            return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ArtifactSet):
            return self._files == other._files
        if isinstance(other, Mapping):
            return self._files == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ArtifactSet({len(self._files)} files)"

    @property
    def paths(self) -> List[str]:
        return list(self._files)

    def with_files(self, replacements: Mapping[str, str]) -> "ArtifactSet":
        """Return a copy where every path in ``replacements`` is written whole."""

        merged = dict(self._files)
        for path, content in replacements.items():
            merged[normalize_path(path)] = str(content)
        return ArtifactSet(merged)

    def matching(self, *suffixes: str) -> Dict[str, str]:
        return {path: content for path, content in self._files.items() if path.endswith(suffixes)}

    def under(self, prefix: str) -> Dict[str, str]:
        prefix = normalize_path(prefix).rstrip("/") + "/"
        return {path: content for path, content in self._files.items() if path.startswith(prefix)}

    def resolve(self, reference: str) -> Optional[str]:
        """Map a path mentioned in tool output back onto a path in the set.

        Exact matches win. Otherwise a unique path ending in ``/reference`` is
        accepted, and then the longest path that ``reference`` ends with (tool
        output often carries the sandbox's absolute directory). Ambiguous or
        unknown references resolve to ``None``.
        """

        try:
            wanted = normalize_path(reference)
        except ValueError:
            return None
        if wanted in self._files:
            return wanted
        candidates = [path for path in self._files if path.endswith("/" + wanted)]
        if len(candidates) == 1:
            return candidates[0]
        if candidates:
            return None
        containing = [path for path in self._files if wanted.endswith("/" + path)]
        if containing:
            return max(containing, key=len)
        return None

    def to_dict(self) -> Dict[str, str]:
        return dict(self._files)


__all__ = ["ArtifactSet", "normalize_path"]
