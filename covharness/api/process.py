"""
Subprocess capture and assertion helpers.

`Command` is a plain description of one invocation (argv, cwd, environment).
`capture` runs it to completion and returns an `AssertOutput`; the
`assert_success` / `assert_failure` wrappers and the `*_contains` checks raise
`AssertionError` with both captured streams so pytest shows everything needed
to diagnose a mismatch without re-running.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Union

RULE = "-" * 60


@dataclass
class Command:
    argv: List[str]
    cwd: Optional[Path] = None
    env: Dict[str, str] = field(default_factory=lambda: dict(os.environ))

    def arg(self, value: object) -> "Command":
        self.argv.append(str(value))
        return self

    def args(self, values: Sequence[object]) -> "Command":
        self.argv.extend(str(v) for v in values)
        return self

    def set_env(self, key: str, value: str) -> "Command":
        self.env[key] = value
        return self

    def remove_env(self, key: str) -> "Command":
        self.env.pop(key, None)
        return self

    def envs(self, pairs: Union[Mapping[str, str], Sequence[tuple[str, str]]]) -> "Command":
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        for key, value in items:
            self.env[key] = value
        return self

    def current_dir(self, cwd: Union[str, Path]) -> "Command":
        self.cwd = Path(cwd)
        return self


def frame(text: str) -> str:
    return f"{RULE}\n{text}\n{RULE}"


def streams_message(headline: str, stdout: str, stderr: str) -> str:
    return f"{headline}:\n\nSTDOUT:\n{frame(stdout)}\n\nSTDERR:\n{frame(stderr)}\n"


def line_separated(patterns: str) -> Iterator[str]:
    for line in patterns.split("\n"):
        line = line.strip()
        if line:
            yield line


@dataclass(frozen=True)
class AssertOutput:
    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def _check(self, stream: str, patterns: str, *, present: bool) -> "AssertOutput":
        actual = getattr(self, stream)
        for pat in line_separated(patterns):
            if (pat in actual) != present:
                op = "" if present else "!"
                raise AssertionError(
                    f"assertion failed: `{op}{stream}.contains(..)`:\n\n"
                    f"EXPECTED:\n{frame(pat)}\n\nACTUAL:\n{frame(actual)}\n"
                )
        return self

    def stdout_contains(self, patterns: str) -> "AssertOutput":
        """Each non-blank line of `patterns` must appear in stdout."""
        return self._check("stdout", patterns, present=True)

    def stderr_contains(self, patterns: str) -> "AssertOutput":
        """Each non-blank line of `patterns` must appear in stderr."""
        return self._check("stderr", patterns, present=True)

    def stdout_not_contains(self, patterns: str) -> "AssertOutput":
        return self._check("stdout", patterns, present=False)

    def stderr_not_contains(self, patterns: str) -> "AssertOutput":
        return self._check("stderr", patterns, present=False)


def _as_command(cmd: Union[Command, Sequence[object]]) -> Command:
    if isinstance(cmd, Command):
        return cmd
    return Command(argv=[str(part) for part in cmd])


def capture(cmd: Union[Command, Sequence[object]]) -> AssertOutput:
    """Run `cmd` to completion; stdout/stderr are decoded lossily."""
    command = _as_command(cmd)
    try:
        res = subprocess.run(
            command.argv,
            capture_output=True,
            text=True,
            errors="replace",
            cwd=str(command.cwd) if command.cwd is not None else None,
            env=command.env,
        )
    except OSError as exc:
        raise AssertionError(f"could not execute process `{' '.join(command.argv)}`: {exc}") from exc
    return AssertOutput(stdout=res.stdout or "", stderr=res.stderr or "", returncode=res.returncode)


def assert_success(cmd: Union[Command, Sequence[object]]) -> AssertOutput:
    output = capture(cmd)
    if not output.success:
        raise AssertionError(
            streams_message(
                f"assertion failed: `status.success()` (exit code {output.returncode})",
                output.stdout,
                output.stderr,
            )
        )
    return output


def assert_failure(cmd: Union[Command, Sequence[object]]) -> AssertOutput:
    output = capture(cmd)
    if output.success:
        raise AssertionError(streams_message("assertion failed: `!status.success()`", output.stdout, output.stderr))
    return output
