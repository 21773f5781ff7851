"""`python -m covharness` entrypoint; the CLI lives in `covharness.api.cli`."""

from __future__ import annotations

from covharness.api import cli


def main() -> int:
    return cli.main()


if __name__ == "__main__":
    raise SystemExit(main())
