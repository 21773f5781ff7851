"""
Fixture model and golden-file resolution.

Fixture projects live under `<fixtures-root>/crates/<model>/`; their expected
reports live under `<fixtures-root>/coverage-reports/<model>/<name>.<ext>`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from covharness.api import paths


class FixtureNotFoundError(RuntimeError):
    """Raised when a fixture model has no directory under the fixtures root."""


@dataclass(frozen=True)
class FixtureModel:
    name: str
    root: Path

    @property
    def path(self) -> Path:
        return self.root / paths.CRATES_DIR / self.name

    @property
    def reports_dir(self) -> Path:
        return self.root / paths.REPORTS_DIR / self.name

    def golden_path(self, name: str, extension: str) -> Path:
        return self.reports_dir / f"{name}.{extension}"


def fixtures_root() -> Path:
    return paths.fixtures_root()


def resolve_model(name: str, *, root: Path | None = None) -> FixtureModel:
    if not name or Path(name).name != name:
        raise FixtureNotFoundError(f"invalid fixture model name: {name!r}")
    model = FixtureModel(name=name, root=root or fixtures_root())
    if not model.path.is_dir():
        raise FixtureNotFoundError(f"missing fixture model: {model.path}")
    return model


def golden_path(model: str, name: str, extension: str, *, root: Path | None = None) -> Path:
    return FixtureModel(name=model, root=root or fixtures_root()).golden_path(name, extension)


def read_expected(path: Path) -> str:
    """Golden content, or "" when the golden has not been generated yet."""
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except FileNotFoundError:
        return ""
