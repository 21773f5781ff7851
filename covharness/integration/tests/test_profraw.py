from __future__ import annotations

import struct
import sys

import pytest

from covharness.api import profraw


def _write_profile(path, magic=profraw.RAW_PROFILE_MAGIC_64, tail=bytes(range(40))):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(struct.pack("=Q", magic) + tail)
    return path


def test_magic_constant_spells_lprofr():
    packed = profraw.RAW_PROFILE_MAGIC_64.to_bytes(8, "big")
    assert packed == b"\xfflprofr\x81"


def test_perturb_header_increments_first_word_only(tmp_path):
    tail = bytes(range(40))
    path = _write_profile(tmp_path / "a.profraw", tail=tail)
    profraw.perturb_header(path)
    data = path.read_bytes()
    assert len(data) == 8 + len(tail)
    (magic,) = struct.unpack("=Q", data[:8])
    assert magic == profraw.RAW_PROFILE_MAGIC_64 + 1
    assert data[8:] == tail
    # Native order: on little-endian hosts the low byte (129) is first.
    expected_first = 130 if sys.byteorder == "little" else 255
    assert data[0] == expected_first


def test_perturb_header_rejects_wrong_magic(tmp_path):
    path = _write_profile(tmp_path / "b.profraw", magic=profraw.RAW_PROFILE_MAGIC_64 + 1)
    before = path.read_bytes()
    with pytest.raises(AssertionError, match="not a raw profile"):
        profraw.perturb_header(path)
    assert path.read_bytes() == before


def test_perturb_header_rejects_short_file(tmp_path):
    path = tmp_path / "short.profraw"
    path.write_bytes(b"\xff\x6c")
    with pytest.raises(EOFError):
        profraw.perturb_header(path)
    assert path.read_bytes() == b"\xff\x6c"


def test_perturb_one_header_picks_single_profraw(tmp_path):
    target = profraw.raw_profile_dir(tmp_path)
    first = _write_profile(target / "a-1.profraw")
    second = _write_profile(target / "b-2.profraw")
    (target / "notes.txt").write_text("not a profile")

    touched = profraw.perturb_one_header(tmp_path)
    assert touched == first
    (m1,) = struct.unpack("=Q", first.read_bytes()[:8])
    (m2,) = struct.unpack("=Q", second.read_bytes()[:8])
    assert m1 == profraw.RAW_PROFILE_MAGIC_64 + 1
    assert m2 == profraw.RAW_PROFILE_MAGIC_64


def test_perturb_one_header_without_candidates_is_noop(tmp_path):
    target = profraw.raw_profile_dir(tmp_path)
    target.mkdir(parents=True)
    (target / "report.json").write_text("{}")
    assert profraw.perturb_one_header(tmp_path) is None
    assert (target / "report.json").read_text() == "{}"


def test_perturb_one_header_requires_build_output(tmp_path):
    with pytest.raises(FileNotFoundError):
        profraw.perturb_one_header(tmp_path)
