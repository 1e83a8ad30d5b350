from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping


def ensure_dir(path: Path) -> None:
    """Create directory and parents if they don't exist."""
    path.mkdir(parents=True, exist_ok=True)


def atomic_write(path: Path, content: str) -> None:
    """Write file atomically using temporary file and rename."""
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(content, encoding="utf-8")
    os.replace(tmp_path, path)


def write_tree(root: Path, files: Mapping[str, str]) -> int:
    """Write ``files`` (relative path -> content) under ``root``; returns the count."""
    resolved_root = root.resolve()
    for relative, content in files.items():
        target = (resolved_root / relative).resolve()
        if resolved_root not in target.parents:
            raise ValueError(f"Refusing to write outside the project root: {relative}")
        ensure_dir(target.parent)
        atomic_write(target, content)
    return len(files)
