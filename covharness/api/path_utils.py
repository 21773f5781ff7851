"""
Helpers for consistent repo-root path handling.

Harness records (command artifacts, golden update notes) stay repo-relative so
they read the same on every checkout, while staging and tool invocation always
work on absolute paths.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Sequence, Union

Pathish = Union[str, Path]

REPO_MARKERS = (".git", "pyproject.toml")


@lru_cache()
def find_repo_root(start: Path | None = None) -> Path:
    """
    Walk upward from `start` (or this file) until we find a directory that
    carries one of `REPO_MARKERS`.
    """
    cur = (start or Path(__file__)).resolve()
    for candidate in [cur] + list(cur.parents):
        if any((candidate / marker).exists() for marker in REPO_MARKERS):
            return candidate
    raise RuntimeError("Unable to locate repository root")


def to_repo_relative(path: Pathish, repo_root: Path | None = None) -> str:
    """Return a repo-relative string if possible, otherwise the absolute string."""
    p = Path(path).resolve()
    try:
        root = (repo_root or find_repo_root()).resolve()
        return str(p.relative_to(root))
    except (RuntimeError, ValueError):
        return str(p)


def relativize_command(parts: Sequence[Pathish], repo_root: Path | None = None) -> list[str]:
    """Convert any repo-root-prefixed argv entries to repo-relative form."""
    root = (repo_root or find_repo_root()).resolve()
    rel: list[str] = []
    for part in parts:
        text = str(part)
        if text.startswith(str(root)):
            rel.append(to_repo_relative(text, root))
        else:
            rel.append(text)
    return rel
