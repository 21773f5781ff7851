"""
Stand-in for `cargo-llvm-cov` used by the harness tests.

Mirrors the parts of the real CLI the harness depends on:
- `llvm-cov [--no-report] ...` writes a raw profile under
  `target/llvm-cov-target/` and (unless `--no-report`) a report.
- `llvm-cov report ...` re-reads existing raw profiles and fails on a bad magic.
- `--json` / `--summary-only` / `--output-path` / `--color` are honoured.
- `--dump-env` prints the environment variables the harness controls.
- `FAKE_COV_FAIL=1` forces a failing exit.
- `FAKE_COV_ARGV_LOG=<path>` records argv and `FAKE_COV_EXTRA` as JSON in <path>.
- Paths in reports use the host separator, like the real tool.
"""

from __future__ import annotations

import json
import os
import struct
import sys
from pathlib import Path

MAGIC = (
    255 << 56
    | ord("l") << 48
    | ord("p") << 40
    | ord("r") << 32
    | ord("o") << 24
    | ord("f") << 16
    | ord("r") << 8
    | 129
)
ENV_KEYS = (
    "RUSTFLAGS",
    "RUSTDOCFLAGS",
    "CARGO_BUILD_RUSTFLAGS",
    "CARGO_BUILD_RUSTDOCFLAGS",
    "CARGO_TERM_VERBOSE",
    "CARGO_TERM_COLOR",
    "BROWSER",
    "RUST_LOG",
    "CI",
    "CARGO_LLVM_COV_DENY_WARNINGS",
    "FAKE_COV_EXTRA",
)
TARGET = Path("target") / "llvm-cov-target"
LIB_RS = os.path.join("src", "lib.rs")
MAIN_C = os.path.join("src", "main.c")


def _export(summary_only: bool) -> dict:
    totals = {"lines": {"count": 12, "covered": 10, "percent": 83.33333333333334}}
    data = {
        "files": [{"filename": LIB_RS, "summary": totals}],
        "totals": totals,
    }
    if not summary_only:
        data["functions"] = [
            {"name": "_ZN6simple4func17h9c7ff6eb8c4f1b4bE", "count": 3, "filenames": [LIB_RS]},
            {"name": "main", "count": 1, "filenames": [MAIN_C]},
        ]
    return {"data": [data], "type": "llvm.coverage.json.export", "version": "2.0.1"}


def main(argv: list[str]) -> int:
    if not argv or argv[0] != "llvm-cov":
        sys.stderr.write("error: expected `llvm-cov` as the first argument\n")
        return 2
    args = argv[1:]
    subcommand = args[0] if args and not args[0].startswith("-") else None
    if subcommand:
        args = args[1:]

    log = os.environ.get("FAKE_COV_ARGV_LOG")
    if log:
        Path(log).write_text(json.dumps({"argv": argv, "FAKE_COV_EXTRA": os.environ.get("FAKE_COV_EXTRA")}))

    if "--dump-env" in args:
        print(json.dumps({key: os.environ.get(key) for key in ENV_KEYS}))
        return 0
    if os.environ.get("FAKE_COV_FAIL"):
        print("running 1 test")
        sys.stderr.write("error: forced failure\n")
        return 1

    if subcommand == "report":
        for path in sorted(TARGET.glob("*.profraw")):
            (magic,) = struct.unpack("=Q", path.read_bytes()[:8])
            if magic != MAGIC:
                sys.stderr.write(
                    f"error: failed to merge profile data: {path.name}: "
                    "invalid instrumentation profile data (bad magic)\n"
                )
                return 1
    else:
        TARGET.mkdir(parents=True, exist_ok=True)
        (TARGET / "simple-0001.profraw").write_bytes(struct.pack("=Q", MAGIC) + bytes(range(24)))
        print("test test ... ok")

    if "--no-report" in args:
        return 0

    if "--json" in args:
        body = json.dumps(_export("--summary-only" in args), separators=(",", ":"))
    else:
        body = (
            "Filename                      Regions    Missed Regions     Cover\n"
            f"{LIB_RS:<36}12                 2    83.33%\n"
        )
    if "--output-path" in args:
        Path(args[args.index("--output-path") + 1]).write_text(body)
    else:
        print(body)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
