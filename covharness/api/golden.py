"""
Golden report comparison.

Local runs regenerate goldens for human review (the normalized output is copied
over `coverage-reports/<model>/<name>.<ext>`); CI runs (`CI` set) enforce them
and fail with a `git diff --no-index` of expected vs. actual.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from covharness.api import fixtures, path_utils, paths, process, tool, workspace
from covharness.api.normalize import normalize_output


@dataclass(frozen=True)
class ReportResult:
    golden_path: Path
    expected: str
    actual: str
    golden_updated: bool


def assert_output(output_path: Path, expected: str, *, ci: Optional[bool] = None) -> None:
    """Fail with a diff when `output_path` differs from `expected` (CI only)."""
    if ci is None:
        ci = paths.ci_enabled()
    if not ci:
        return
    argv = [paths.git_executable(), "--no-pager", "diff", "--no-index", "--", "-", str(output_path)]
    res = subprocess.run(argv, input=expected.encode("utf-8"), capture_output=True)
    if res.returncode != 0:
        raise AssertionError(
            process.streams_message(
                f"golden mismatch for {output_path.name} (exit code {res.returncode})",
                res.stdout.decode("utf-8", errors="replace"),
                res.stderr.decode("utf-8", errors="replace"),
            )
        )


def check_report(
    model: str,
    name: str,
    extension: str,
    subcommand: Optional[str] = None,
    args: Sequence[str] = (),
    envs: Sequence[tuple[str, str]] = (),
    *,
    ci: Optional[bool] = None,
) -> ReportResult:
    """
    Stage `model`, produce report `name.extension` with the coverage tool,
    normalize it and compare it against its golden file.
    """
    if ci is None:
        ci = paths.ci_enabled()
    golden = fixtures.golden_path(model, name, extension)
    expected = fixtures.read_expected(golden)
    with workspace.stage_workspace(model) as workspace_root:
        root = Path(workspace_root)
        output_path = root / f"{name}.{extension}"
        cmd = tool.report_command(output_path, subcommand=subcommand, args=args, envs=envs, cwd=root)
        process.assert_success(cmd)

        normalize_output(output_path, args)
        assert_output(output_path, expected, ci=ci)

        actual = output_path.read_bytes().decode("utf-8", errors="replace")
        updated = False
        if not ci and actual != expected:
            golden.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(output_path, golden)
            updated = True
            print(f"[covharness] golden updated: {path_utils.to_repo_relative(golden)}", flush=True)
    return ReportResult(golden_path=golden, expected=expected, actual=actual, golden_updated=updated)
