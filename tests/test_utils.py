"""Unit tests for utils.py functions."""

from __future__ import annotations

import binascii
import re
import stat
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from assetgate.utils import atomic_write, b64decode, b64encode, sha256_hex, utc_now_rfc3339


class TestSha256Hex:
    def test_empty(self) -> None:
        assert sha256_hex(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

    def test_lowercase_hex(self) -> None:
        assert re.fullmatch(r"[0-9a-f]{64}", sha256_hex(b"asset1"))


class TestBase64:
    def test_encode(self) -> None:
        assert b64encode(b"true") == "dHJ1ZQ=="

    def test_decode(self) -> None:
        assert b64decode("dHJ1ZQ==") == b"true"

    def test_decode_rejects_garbage(self) -> None:
        with pytest.raises(binascii.Error):
            b64decode("not base64!")


class TestUtcNow:
    def test_zulu_suffix(self) -> None:
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z", utc_now_rfc3339())


class TestAtomicWrite:
    def test_writes_and_replaces(self, tmp_path: Path) -> None:
        target = tmp_path / "appUser.id"
        atomic_write(target, b"first")
        atomic_write(target, b"second")
        assert target.read_bytes() == b"second"
        assert not (tmp_path / "appUser.id.tmp").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only(self, tmp_path: Path) -> None:
        target = tmp_path / "appUser.id"
        atomic_write(target, b"{}")
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_failure_leaves_no_temp(self, tmp_path: Path) -> None:
        target = tmp_path / "appUser.id"
        target.write_bytes(b"old")
        with patch("assetgate.utils.os.fsync", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(target, b"new")
        assert target.read_bytes() == b"old"
        assert not (tmp_path / "appUser.id.tmp").exists()
