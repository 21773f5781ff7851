"""Scenarios against a real `cargo-llvm-cov` (skipped when it is not installed)."""

from __future__ import annotations

import json
import shutil

import pytest

from covharness.api import golden, paths, process, profraw, tool

pytestmark = pytest.mark.skipif(
    shutil.which(paths.DEFAULT_TOOL) is None, reason="cargo-llvm-cov is not installed"
)


@pytest.fixture
def simple_model(fixture_repo):
    return fixture_repo.add_packaged_model("simple")


def test_json_report_is_stable(fixture_repo, simple_model):
    golden.check_report("simple", "simple", "json", args=["--json"], ci=False)
    doc = json.loads(fixture_repo.golden("simple", "simple", "json").read_text())
    assert doc["data"]
    golden.check_report("simple", "simple", "json", args=["--json"], ci=True)


def test_text_report_is_stable(fixture_repo, simple_model):
    golden.check_report("simple", "simple", "txt", ci=False)
    golden.check_report("simple", "simple", "txt", ci=True)


def test_corrupted_raw_profile_fails_report(simple_model, staged_workspace):
    root = staged_workspace("simple")
    process.assert_success(tool.coverage_tool().arg("--no-report").current_dir(root))
    assert profraw.perturb_one_header(root) is not None
    process.assert_failure(tool.coverage_tool("report").current_dir(root))
