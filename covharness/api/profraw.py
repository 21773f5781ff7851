"""
Raw instrumentation-profile (`.profraw`) fault injection.

Only the 8-byte magic word at the start of the file is understood here: it is
read as a native-endian u64, checked against `RAW_PROFILE_MAGIC_64`, bumped by
one and written back with the same byte order. That is enough for the
consuming tool's magic validation to reject the file; every other byte is left
as the instrumented binary wrote it.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Optional, Union

from covharness.api import paths

RAW_PROFILE_EXTENSION = ".profraw"

RAW_PROFILE_MAGIC_64 = (
    255 << 56
    | ord("l") << 48
    | ord("p") << 40
    | ord("r") << 32
    | ord("o") << 24
    | ord("f") << 16
    | ord("r") << 8
    | 129
)

# Native byte order, standard 8-byte width (no alignment padding).
_MAGIC = struct.Struct("=Q")


def raw_profile_dir(workspace_root: Path) -> Path:
    return workspace_root / paths.LLVM_COV_TARGET_DIR


def find_raw_profile(workspace_root: Path) -> Optional[Path]:
    """First `*.profraw` in the workspace's llvm-cov target directory, by name."""
    target_dir = raw_profile_dir(workspace_root)
    for entry in sorted(target_dir.iterdir()):
        if entry.suffix == RAW_PROFILE_EXTENSION and entry.is_file():
            return entry
    return None


def perturb_header(path: Union[str, Path]) -> None:
    with open(path, "r+b") as fh:
        head = fh.read(_MAGIC.size)
        if len(head) != _MAGIC.size:
            raise EOFError(f"{path}: expected {_MAGIC.size}-byte header, got {len(head)} bytes")
        (magic,) = _MAGIC.unpack(head)
        if magic != RAW_PROFILE_MAGIC_64:
            raise AssertionError(
                f"{path}: header magic {magic:#018x} != {RAW_PROFILE_MAGIC_64:#018x}; not a raw profile"
            )
        fh.seek(0)
        fh.write(_MAGIC.pack(magic + 1))


def perturb_one_header(workspace_root: Path) -> Optional[Path]:
    """Corrupt one raw profile under `workspace_root`; returns it, or None if there is none."""
    path = find_raw_profile(workspace_root)
    if path is not None:
        perturb_header(path)
    return path
