"""Shared fixtures for tachosync tests."""

from __future__ import annotations

import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Create an empty sync root."""
    r = tmp_path / "root"
    r.mkdir()
    return r


@pytest.fixture
def make_zip() -> Callable[[Path, dict[str, bytes]], Path]:
    """Return a function writing an uncompressed zip with the given members."""

    def _make(path: Path, members: dict[str, bytes]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
            for name, data in members.items():
                zf.writestr(name, data)
        return path

    return _make


@pytest.fixture
def corrupt_zip() -> Callable[[Path, bytes, bytes], Path]:
    """Return a function replacing a member's stored payload in place.

    The replacement has the same length, so the archive still opens and
    fails with a CRC error only when that member is extracted.
    """

    def _corrupt(path: Path, payload: bytes, replacement: bytes) -> Path:
        assert len(payload) == len(replacement)
        data = path.read_bytes()
        assert data.count(payload) == 1
        path.write_bytes(data.replace(payload, replacement))
        return path

    return _corrupt
