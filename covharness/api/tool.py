"""
Coverage tool invocation with a hermetic environment.

Every command built here starts from a copy of the host environment with the
build, doc, verbosity, color, browser, logging and CI variables removed, and
with `CARGO_LLVM_COV_DENY_WARNINGS` set so the tool promotes its internal
warnings to errors.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence, Union

from covharness.api import paths
from covharness.api.process import Command

SANITIZED_ENV_VARS = (
    "RUSTFLAGS",
    "RUSTDOCFLAGS",
    "CARGO_BUILD_RUSTFLAGS",
    "CARGO_BUILD_RUSTDOCFLAGS",
    "CARGO_TERM_VERBOSE",
    "CARGO_TERM_COLOR",
    "BROWSER",
    "RUST_LOG",
    "CI",
)
DENY_WARNINGS_ENV = ("CARGO_LLVM_COV_DENY_WARNINGS", "true")

LLVM_TOOLS_COMPONENT = "llvm-tools-preview"

EnvPairs = Union[Mapping[str, str], Sequence[tuple[str, str]]]


class Once:
    """Run a side-effecting action at most once per process, across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def call(self, action: Callable[[], object]) -> None:
        if self._done:
            return
        with self._lock:
            if self._done:
                return
            try:
                action()
            finally:
                self._done = True


def install_llvm_tools() -> None:
    # Best-effort: the component is usually already present.
    argv = [paths.rustup_executable(), "component", "add", LLVM_TOOLS_COMPONENT]
    try:
        res = subprocess.run(argv, capture_output=True)
    except OSError as exc:
        print(f"[covharness] toolchain: skipped `{' '.join(argv)}` ({exc})", flush=True)
        return
    if res.returncode != 0:
        print(f"[covharness] toolchain: `{' '.join(argv)}` exited {res.returncode}; continuing", flush=True)


_LLVM_TOOLS_ONCE = Once()


def ensure_llvm_tools_installed() -> None:
    # Install the component first to avoid component installation conflicts.
    _LLVM_TOOLS_ONCE.call(install_llvm_tools)


def tool_program() -> list[str]:
    override = os.environ.get("COVHARNESS_TOOL")
    if override:
        return shlex.split(override)
    return [shutil.which(paths.DEFAULT_TOOL) or paths.DEFAULT_TOOL]


def sanitized_env(base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    env = dict(os.environ if base is None else base)
    for key in SANITIZED_ENV_VARS:
        env.pop(key, None)
    key, value = DENY_WARNINGS_ENV
    env[key] = value
    return env


def coverage_tool(subcommand: str = "") -> Command:
    ensure_llvm_tools_installed()
    cmd = Command(argv=[*tool_program(), "llvm-cov"], env=sanitized_env())
    if subcommand:
        cmd.arg(subcommand)
    return cmd


def report_command(
    output_path: Path,
    *,
    subcommand: Optional[str] = None,
    args: Sequence[str] = (),
    envs: EnvPairs = (),
    cwd: Optional[Path] = None,
) -> Command:
    """
    Command for one report scenario: the fixed baseline flags first, then the
    caller's arguments and environment pairs verbatim.
    """
    cmd = coverage_tool()
    if subcommand:
        cmd.arg(subcommand)
    cmd.args(["--color", "never", "--output-path", output_path, "--remap-path-prefix"])
    cmd.args(args)
    if cwd is not None:
        cmd.current_dir(cwd)
    cmd.envs(envs)
    return cmd
