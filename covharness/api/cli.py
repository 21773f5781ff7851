#!/usr/bin/env python3
"""
`covharness` command-line interface.

Thin wiring over `covharness.api` for working with fixtures and goldens by hand:
- `stage MODEL DEST`: copy the tracked files of a fixture into DEST.
- `normalize PATH`: normalize a report file in place.
- `perturb WORKSPACE`: corrupt one raw profile under WORKSPACE.
- `report MODEL NAME EXT [--subcommand S] [--env K=V]... [-- ARGS...]`: run one
  report scenario; everything after `--` goes to the coverage tool verbatim.

This is the entrypoint for `python -m covharness ...` (via `__main__.py`).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from covharness.api import fixtures, golden, normalize, path_utils, profraw, workspace


def _parse_env(raw: str) -> tuple[str, str]:
    if "=" not in raw:
        raise SystemExit(f"--env must be KEY=VALUE (got {raw!r})")
    key, value = raw.split("=", 1)
    if not key:
        raise SystemExit(f"--env key must be non-empty (got {raw!r})")
    return key, value


def _cmd_stage(args: argparse.Namespace) -> int:
    model = fixtures.resolve_model(args.model)
    dest = Path(args.dest)
    copied = workspace.copy_tracked_files(model.path, dest)
    print(f"[+] staged {len(copied)} files from {model.name} into {dest}")
    return 0


def _cmd_normalize(args: argparse.Namespace) -> int:
    flags = []
    if args.json:
        flags.append("--json")
    if args.summary_only:
        flags.append("--summary-only")
    normalize.normalize_output(Path(args.path), flags, windows=True if args.windows else None)
    print(f"[+] normalized {args.path}")
    return 0


def _cmd_perturb(args: argparse.Namespace) -> int:
    path = profraw.perturb_one_header(Path(args.workspace))
    if path is None:
        print(f"[-] no {profraw.RAW_PROFILE_EXTENSION} file under {profraw.raw_profile_dir(Path(args.workspace))}")
        return 1
    print(f"[+] perturbed {path}")
    return 0


def _cmd_report(args: argparse.Namespace) -> int:
    result = golden.check_report(
        args.model,
        args.name,
        args.extension,
        subcommand=args.subcommand,
        args=args.tool_args,
        envs=[_parse_env(raw) for raw in args.env],
    )
    state = "updated" if result.golden_updated else "unchanged"
    print(f"[+] {path_utils.to_repo_relative(result.golden_path)} ({state})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="covharness", description="cargo-llvm-cov conformance harness helpers.")
    sub = ap.add_subparsers(dest="command", required=True)

    ap_stage = sub.add_parser("stage", help="Copy the git-tracked files of a fixture model into DEST.")
    ap_stage.add_argument("model")
    ap_stage.add_argument("dest")
    ap_stage.set_defaults(func=_cmd_stage)

    ap_norm = sub.add_parser("normalize", help="Normalize a report file in place.")
    ap_norm.add_argument("path")
    ap_norm.add_argument("--json", action="store_true", help="Report is a JSON export (demangle + pretty print)")
    ap_norm.add_argument("--summary-only", action="store_true", help="JSON export was produced with --summary-only")
    ap_norm.add_argument("--windows", action="store_true", help="Rewrite backslash separators regardless of host")
    ap_norm.set_defaults(func=_cmd_normalize)

    ap_perturb = sub.add_parser("perturb", help="Corrupt the magic header of one raw profile in WORKSPACE.")
    ap_perturb.add_argument("workspace")
    ap_perturb.set_defaults(func=_cmd_perturb)

    ap_report = sub.add_parser("report", help="Run one report scenario against its golden file; tool arguments follow `--`.")
    ap_report.add_argument("model")
    ap_report.add_argument("name")
    ap_report.add_argument("extension")
    ap_report.add_argument("--subcommand", default=None)
    ap_report.add_argument("--env", action="append", default=[], help="KEY=VALUE passed to the tool")
    ap_report.set_defaults(func=_cmd_report)
    return ap


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # Everything after the first `--` belongs to the coverage tool, untouched by argparse.
    tool_args: list[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, tool_args = argv[:split], argv[split + 1 :]
    parser = build_parser()
    args = parser.parse_args(argv)
    if tool_args and args.command != "report":
        parser.error(f"arguments after `--` are only accepted by `report` (got {tool_args!r})")
    args.tool_args = tool_args
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
