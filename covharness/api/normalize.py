"""
In-place normalization of coverage tool output.

Two passes, both idempotent:

1. JSON exports (`--json`) are parsed, function symbols are demangled (unless
   `--summary-only`, which carries no function records) and the document is
   re-serialized with stable pretty formatting.
2. On backslash-separator hosts, path separators are rewritten to `/`. In JSON
   a separator is escaped (`\\\\`), in every other format it is not (`\\`), so
   escaped pairs are collapsed first and lone backslashes second.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from rust_demangler import demangle as rust_demangle

# Legacy symbols end in a `::h<16 hex>` hash; the alternate demangled form omits it.
_LEGACY_HASH = re.compile(r"::h[0-9a-f]{16}$")
_RUST_MANGLED = re.compile(r"^(?:_?_ZN.+E(?:\.[\w.]+)?|_?_R[0-9]*[A-Z].*)$")


class NormalizationError(RuntimeError):
    """Raised when tool output cannot be parsed for normalization."""


def demangle_symbol(name: str) -> str:
    """Demangle a Rust symbol; anything unrecognised is returned unchanged."""
    if not _RUST_MANGLED.match(name):
        return name
    try:
        demangled = rust_demangle(name)
    except Exception:
        # Not a symbol rust-demangler understands (C/C++ or malformed): keep it.
        return name
    if not demangled:
        return name
    return _LEGACY_HASH.sub("", demangled)


@dataclass
class CoverageExport:
    """An `llvm-cov export -format=text` document (as emitted by `--json`)."""

    doc: Dict[str, Any]

    @classmethod
    def from_json(cls, text: str, *, source: str = "<output>") -> "CoverageExport":
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as exc:
            raise NormalizationError(f"invalid json: {source}: {exc}") from exc
        if not isinstance(doc, dict) or not isinstance(doc.get("data"), list):
            raise NormalizationError(f"not a coverage export (missing `data` list): {source}")
        return cls(doc=doc)

    @property
    def data(self) -> List[Dict[str, Any]]:
        return self.doc["data"]

    def functions(self) -> Iterator[Dict[str, Any]]:
        for export in self.data:
            if not isinstance(export, dict):
                continue
            for func in export.get("functions") or []:
                if isinstance(func, dict) and isinstance(func.get("name"), str):
                    yield func

    def demangle(self) -> None:
        for func in self.functions():
            func["name"] = demangle_symbol(func["name"])

    def to_json(self) -> str:
        return json.dumps(self.doc, indent=2, ensure_ascii=False)


def normalize_separators(text: str) -> str:
    return text.replace("\\\\", "/").replace("\\", "/")


def normalize_output(output_path: Path, args: Sequence[str], *, windows: Optional[bool] = None) -> None:
    if windows is None:
        windows = os.sep == "\\"
    # Bytes in, bytes out: no newline translation on Windows.
    if "--json" in args:
        export = CoverageExport.from_json(_read(output_path), source=str(output_path))
        if "--summary-only" not in args:
            export.demangle()
        output_path.write_bytes(export.to_json().encode("utf-8"))
    if windows:
        output_path.write_bytes(normalize_separators(_read(output_path)).encode("utf-8"))


def _read(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise NormalizationError(f"output is not utf-8: {path}") from exc
