"""文件摘要测试"""

import hashlib
from pathlib import Path

import pytest

from pkgforge.core.checksum import checksum_matches, file_digest
from pkgforge.core.exceptions import ValidationError


class TestFileDigest:
    def test_md5_default(self, tmp_path: Path) -> None:
        f = tmp_path / "a.bin"
        f.write_bytes(b"hello")
        assert file_digest(f) == hashlib.md5(b"hello").hexdigest()

    def test_sha256(self, tmp_path: Path) -> None:
        f = tmp_path / "a.bin"
        f.write_bytes(b"hello" * 100_000)
        assert file_digest(f, "sha256") == hashlib.sha256(b"hello" * 100_000).hexdigest()

    def test_unknown_algorithm(self, tmp_path: Path) -> None:
        f = tmp_path / "a.bin"
        f.write_bytes(b"x")
        with pytest.raises(ValidationError, match="不支持的摘要算法"):
            file_digest(f, "nope")


class TestChecksumMatches:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert checksum_matches(tmp_path / "missing", "abc") is False

    def test_match_is_case_insensitive(self, tmp_path: Path) -> None:
        f = tmp_path / "a.bin"
        f.write_bytes(b"data")
        expected = hashlib.md5(b"data").hexdigest().upper()
        assert checksum_matches(f, expected) is True

    def test_mismatch(self, tmp_path: Path) -> None:
        f = tmp_path / "a.bin"
        f.write_bytes(b"data")
        assert checksum_matches(f, hashlib.md5(b"other").hexdigest()) is False
