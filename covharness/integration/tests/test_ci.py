from __future__ import annotations

import subprocess

from covharness.integration import ci


def _record_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(subprocess, "check_call", lambda cmd, cwd, env: calls.append((cmd, cwd, env)))
    return calls


def test_all_mode_enforces_goldens(monkeypatch, repo_root):
    monkeypatch.delenv("CI", raising=False)
    calls = _record_calls(monkeypatch)
    ci.main([])
    (cmd, cwd, env), = calls
    assert cmd[1:] == ["-m", "pytest"]
    assert cwd == repo_root
    assert env["CI"] == "1"
    assert env["PYTHONPATH"] == str(repo_root)


def test_regen_mode_drops_ci(monkeypatch):
    monkeypatch.setenv("CI", "true")
    calls = _record_calls(monkeypatch)
    ci.main(["regen"])
    (_, _, env), = calls
    assert "CI" not in env
