"""
Pytest support for covharness.

This file is intentionally a *single* module (not a package) and is loaded as a
pytest plugin via `pyproject.toml` (`-p covharness.integration.support`).

What belongs here:
- Tiny, boring helpers that many tests want (subprocess capture, git-tracked
  fixture trees).
- The minimal pytest hooks/fixtures needed to make failures debuggable.
- "Last run only" artifact emission under `covharness/integration/out/`.

What does *not* belong here:
- Staging, normalization or golden logic (that belongs in `covharness/api/*`).
"""

from __future__ import annotations

import json
import platform
import re
import shlex
import shutil
import subprocess
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Union

import pytest

# Running pytest from a subdirectory does not put the repo root on `sys.path`;
# add it so `covharness.api` resolves to this checkout.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from covharness.api import path_utils, paths, process, tool, workspace


def _sanitize_nodeid(nodeid: str) -> str:
    # Nodeids carry slashes, brackets and spaces; map them to a stable
    # directory name so each test can have its own artifact folder.
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", nodeid)


def _resolve_artifacts_root(repo_root: Path) -> Path:
    # "Last run wins": no timestamps, no UUIDs.
    return repo_root / "covharness" / "integration" / "out"


def _reset_artifacts_root(artifacts_root: Path) -> None:
    if artifacts_root.exists():
        shutil.rmtree(artifacts_root)
    artifacts_root.mkdir(parents=True, exist_ok=True)


def pytest_configure(config: pytest.Config) -> None:
    # Under xdist this runs in the controller and in every worker; only the
    # controller wipes the artifacts root.
    repo_root = path_utils.find_repo_root(Path(__file__))
    artifacts_root = _resolve_artifacts_root(repo_root)
    if getattr(config, "workerinput", None) is None:
        _reset_artifacts_root(artifacts_root)
    else:
        artifacts_root.mkdir(parents=True, exist_ok=True)

    config._covharness_repo_root = repo_root
    config._covharness_artifacts_root = artifacts_root
    config._covharness_counts = {"passed": 0, "failed": 0, "skipped": 0, "xfailed": 0, "xpassed": 0}

    run_meta = {
        "schema_version": 1,
        "started_at": datetime.now(timezone.utc).isoformat(),
        "artifacts_root": path_utils.to_repo_relative(artifacts_root, repo_root=repo_root),
        "python": {
            "executable": sys.executable,
            "version": sys.version,
        },
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "ci": paths.ci_enabled(),
        "fixtures_root": path_utils.to_repo_relative(paths.fixtures_root(), repo_root=repo_root),
        "tool": tool.tool_program(),
        "git": shutil.which(paths.git_executable()),
    }
    (artifacts_root / "run.json").write_text(json.dumps(run_meta, indent=2))


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    config = session.config
    artifacts_root = config._covharness_artifacts_root
    counts = dict(config._covharness_counts)
    summary = {
        "schema_version": 1,
        "exit_status": int(exitstatus),
        "counts": counts,
        "collected": session.testscollected,
        "finished_at": datetime.now(timezone.utc).isoformat(),
    }
    (artifacts_root / "summary.json").write_text(json.dumps(summary, indent=2))


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo):
    outcome = yield
    report = outcome.get_result()
    # Only the "call" phase; setup/teardown failures already show in pytest output.
    if report.when != "call":
        return

    counts = item.config._covharness_counts
    if getattr(report, "wasxfail", None):
        if report.outcome == "passed":
            counts["xpassed"] += 1
        else:
            counts["xfailed"] += 1
    elif report.outcome in counts:
        counts[report.outcome] += 1

    artifacts_root = item.config._covharness_artifacts_root
    node_dir = artifacts_root / _sanitize_nodeid(item.nodeid)
    node_dir.mkdir(parents=True, exist_ok=True)

    record = {
        "nodeid": item.nodeid,
        "outcome": report.outcome,
        "duration_s": round(report.duration, 6),
    }
    if report.failed:
        record["longrepr"] = str(report.longrepr)
        (node_dir / "failure.txt").write_text(str(report.longrepr))
    (node_dir / "report.json").write_text(json.dumps(record, indent=2))


@pytest.fixture(scope="session")
def repo_root(request: pytest.FixtureRequest) -> Path:
    return request.config._covharness_repo_root


@pytest.fixture
def artifact_dir(request: pytest.FixtureRequest) -> Path:
    root = request.config._covharness_artifacts_root
    node_dir = root / _sanitize_nodeid(request.node.nodeid)
    node_dir.mkdir(parents=True, exist_ok=True)
    return node_dir


def _run_cmd(
    cmd: Union[process.Command, Sequence[object]],
    *,
    artifact_dir: Optional[Path] = None,
    label: str = "command",
) -> process.AssertOutput:
    """Capture a subprocess and optionally emit a structured artifact bundle."""
    command = cmd if isinstance(cmd, process.Command) else process.Command(argv=[str(p) for p in cmd])
    start = time.monotonic()
    output = process.capture(command)
    duration = time.monotonic() - start

    if artifact_dir is not None:
        repo_root = path_utils.find_repo_root(Path(__file__))
        artifact_dir.mkdir(parents=True, exist_ok=True)
        (artifact_dir / "stdout.txt").write_text(output.stdout)
        (artifact_dir / "stderr.txt").write_text(output.stderr)
        record = {
            "label": label,
            "argv": path_utils.relativize_command(command.argv, repo_root=repo_root),
            "cwd": str(command.cwd) if command.cwd is not None else None,
            "returncode": output.returncode,
            "duration_s": round(duration, 6),
            "stdout_path": "stdout.txt",
            "stderr_path": "stderr.txt",
        }
        (artifact_dir / "command.json").write_text(json.dumps(record, indent=2))
    return output


@pytest.fixture
def run_cmd(artifact_dir: Path):
    def _run(cmd, *, label="command"):
        return _run_cmd(cmd, artifact_dir=artifact_dir, label=label)

    return _run


class FixtureRepo:
    """A throwaway git-tracked fixtures root (`crates/` + `coverage-reports/`)."""

    def __init__(self, root: Path, git: str) -> None:
        self.root = root
        self.git = git

    def _git(self, *args: str) -> None:
        subprocess.run([self.git, *args], cwd=str(self.root), check=True, capture_output=True)

    def add_model(
        self,
        name: str,
        files: Mapping[str, Union[str, bytes]],
        *,
        untracked: Optional[Mapping[str, Union[str, bytes]]] = None,
    ) -> Path:
        model_dir = self.root / "crates" / name
        written = []
        for rel, content in files.items():
            written.append(_write(model_dir / rel, content))
        for rel, content in (untracked or {}).items():
            _write(model_dir / rel, content)
        self._git("add", "--", *[str(p.relative_to(self.root)) for p in written])
        return model_dir

    def add_packaged_model(self, name: str) -> Path:
        """Track a copy of the checked-in fixture `name`; its goldens are copied alongside."""
        packaged = paths.DEFAULT_FIXTURES_ROOT
        source = packaged / paths.CRATES_DIR / name
        files = {str(p.relative_to(source)): p.read_bytes() for p in sorted(source.rglob("*")) if p.is_file()}
        model_dir = self.add_model(name, files)
        reports = packaged / paths.REPORTS_DIR / name
        if reports.is_dir():
            shutil.copytree(reports, self.root / paths.REPORTS_DIR / name)
        return model_dir

    def golden(self, model: str, name: str, extension: str) -> Path:
        return self.root / "coverage-reports" / model / f"{name}.{extension}"


def _write(path: Path, content: Union[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_bytes(content.encode("utf-8"))
    return path


@pytest.fixture
def fixture_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FixtureRepo:
    git = shutil.which(paths.git_executable())
    if git is None:
        pytest.skip("git is not available")
    root = tmp_path / "fixtures"
    (root / "crates").mkdir(parents=True)
    subprocess.run([git, "init", "-q"], cwd=str(root), check=True, capture_output=True)
    monkeypatch.setenv("COVHARNESS_FIXTURES", str(root))
    return FixtureRepo(root, git)


FAKE_TOOL = REPO_ROOT / "covharness" / "integration" / "tests" / "data" / "fake_cargo_llvm_cov.py"


@pytest.fixture
def fake_tool(monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the harness at the stand-in coverage tool; no rustup side effects."""
    monkeypatch.setenv("COVHARNESS_TOOL", f"{shlex.quote(sys.executable)} {shlex.quote(str(FAKE_TOOL))}")
    once = tool.Once()
    once.call(lambda: None)
    monkeypatch.setattr(tool, "_LLVM_TOOLS_ONCE", once)
    return FAKE_TOOL


@pytest.fixture
def staged_workspace():
    """Factory staging fixture models; every workspace is removed at teardown."""
    staged: Dict[str, object] = {}

    def _stage(model: str) -> Path:
        tmpdir = workspace.stage_workspace(model)
        staged[tmpdir.name] = tmpdir
        return Path(tmpdir.name)

    yield _stage
    for tmpdir in staged.values():
        tmpdir.cleanup()
