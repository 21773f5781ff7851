"""
Clean-room workspace staging.

A workspace is a fresh temporary directory holding exactly the files git tracks
under a fixture model. Build output and other untracked clutter in the fixture
directory never leak into it, and nothing is ever copied back.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import NamedTuple, Sequence

from covharness.api import fixtures, paths, process


class WorkspaceSetupError(RuntimeError):
    """Raised when tracked files cannot be enumerated for staging."""


class TrackedFile(NamedTuple):
    relative: str
    source: Path


def tracked_files(directory: Path, filters: Sequence[str] = ()) -> list[TrackedFile]:
    """
    List files git tracks under `directory`, in git's listing order.

    Entries whose source no longer exists on disk (deleted but not yet staged)
    are dropped.
    """
    # `-z`: NUL-terminated, unquoted names (non-ASCII paths are not C-quoted).
    argv = [paths.git_executable(), "ls-files", "-z", *filters]
    try:
        res = subprocess.run(argv, capture_output=True, cwd=str(directory))
    except OSError as exc:
        raise WorkspaceSetupError(f"could not execute process `{' '.join(argv)}` in {directory}") from exc
    stdout = res.stdout.decode("utf-8", errors="replace")
    if res.returncode != 0:
        raise WorkspaceSetupError(
            process.streams_message(
                f"process didn't exit successfully: `{' '.join(argv)}` in {directory}",
                stdout,
                res.stderr.decode("utf-8", errors="replace"),
            )
        )
    entries: list[TrackedFile] = []
    for raw in res.stdout.split(b"\0"):
        if not raw:
            continue
        name = os.fsdecode(raw)
        source = directory / name
        if not source.exists():
            continue
        entries.append(TrackedFile(name, source))
    return entries


def copy_tracked_files(source_dir: Path, dest_dir: Path, filters: Sequence[str] = ()) -> list[Path]:
    copied: list[Path] = []
    for entry in tracked_files(source_dir, filters):
        to = dest_dir / entry.relative
        if not to.parent.is_dir():
            to.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(entry.source, to)
        copied.append(to)
    return copied


def stage_workspace(model: str, *, root: Path | None = None) -> tempfile.TemporaryDirectory:
    """
    Materialize fixture `model` into a new temporary directory.

    The caller owns the returned `TemporaryDirectory` (use it as a context
    manager). If staging fails part-way the directory is removed before the
    error propagates.
    """
    fixture = fixtures.resolve_model(model, root=root)
    tmpdir = tempfile.TemporaryDirectory(prefix=f"covharness-{model}-")
    try:
        copy_tracked_files(fixture.path, Path(tmpdir.name))
    except BaseException:
        tmpdir.cleanup()
        raise
    return tmpdir
