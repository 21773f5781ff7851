"""
Layout and environment toggles for the harness.

Everything that varies between a developer checkout and CI is read from the
environment at call time (not import time) so tests can flip it with
`monkeypatch.setenv`.

- `COVHARNESS_FIXTURES`: fixtures root (default: `covharness/fixtures`).
- `COVHARNESS_TOOL`: coverage tool argv prefix, shell-split
  (default: `cargo-llvm-cov` on PATH).
- `COVHARNESS_GIT`: git executable (default: `git`).
- `COVHARNESS_RUSTUP`: rustup executable (default: `rustup`).
- `CI`: when set, golden files are enforced instead of regenerated.
"""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_FIXTURES_ROOT = PACKAGE_ROOT / "fixtures"

CRATES_DIR = "crates"
REPORTS_DIR = "coverage-reports"

# Build output layout produced by the tool inside a staged workspace.
TARGET_DIR = Path("target")
LLVM_COV_TARGET_DIR = TARGET_DIR / "llvm-cov-target"

DEFAULT_TOOL = "cargo-llvm-cov"
DEFAULT_GIT = "git"
DEFAULT_RUSTUP = "rustup"


def fixtures_root() -> Path:
    override = os.environ.get("COVHARNESS_FIXTURES")
    if override:
        return Path(override).resolve()
    return DEFAULT_FIXTURES_ROOT


def git_executable() -> str:
    return os.environ.get("COVHARNESS_GIT") or DEFAULT_GIT


def rustup_executable() -> str:
    return os.environ.get("COVHARNESS_RUSTUP") or DEFAULT_RUSTUP


def ci_enabled() -> bool:
    """True when running under CI (any value of `CI`, including empty)."""
    return "CI" in os.environ
