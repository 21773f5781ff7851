#!/usr/bin/env python3
"""
Test driver for covharness.

Supported entrypoints:
- `python -m covharness.integration.ci` (whole suite, golden enforcement on)
- `python -m covharness.integration.ci regen` (whole suite, goldens regenerated)

`all` sets `CI=1` for the pytest process so golden mismatches fail the run;
`regen` removes it so report scenarios rewrite their goldens for review.
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

from covharness.api import path_utils


def _repo_root() -> Path:
    return path_utils.find_repo_root(Path(__file__))


def run_python_harness(*, enforce_goldens: bool) -> None:
    repo_root = _repo_root()
    env = os.environ.copy()
    env["PYTHONPATH"] = str(repo_root)
    if enforce_goldens:
        env["CI"] = env.get("CI") or "1"
    else:
        env.pop("CI", None)

    cmd = [sys.executable, "-m", "pytest"]
    print(f"[ci] python-harness: running {' '.join(cmd)} (CI={'set' if enforce_goldens else 'unset'})", flush=True)
    subprocess.check_call(cmd, cwd=repo_root, env=env)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the covharness test suite.")
    parser.add_argument(
        "mode",
        nargs="?",
        default="all",
        choices=["all", "regen"],
        help="all: enforce goldens; regen: rewrite goldens (default: all)",
    )
    args = parser.parse_args(argv)
    run_python_harness(enforce_goldens=args.mode == "all")


if __name__ == "__main__":
    main()
