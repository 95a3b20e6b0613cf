"""硬链接扫描与重建测试"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from pkgforge.core.cache import hardlinks
from pkgforge.core.cache.hardlinks import (
    dump_hardlink_map,
    find_hardlinks,
    parse_hardlink_map,
    restore_hardlinks,
)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestFindHardlinks:
    def test_groups_in_discovery_order(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """foo/bar 共享 inode，baz/quux 为普通文件 → {foo: [bar]}"""
        foo = _write(tmp_path / "foo", "shared")
        os.link(foo, tmp_path / "bar")
        _write(tmp_path / "baz", "baz")
        _write(tmp_path / "quux", "quux")
        order = [str(tmp_path / n) for n in ("foo", "bar", "baz", "quux")]
        monkeypatch.setattr(hardlinks, "iter_regular_files", lambda root: iter(order))

        assert find_hardlinks(tmp_path) == {str(tmp_path / "foo"): [str(tmp_path / "bar")]}

    def test_single_link_files_excluded(self, tmp_path: Path) -> None:
        _write(tmp_path / "a", "a")
        _write(tmp_path / "sub" / "b", "b")
        assert find_hardlinks(tmp_path) == {}

    def test_nested_group_of_three(self, tmp_path: Path) -> None:
        primary = _write(tmp_path / "bin" / "gzip", "binary")
        os.link(primary, tmp_path / "bin" / "gunzip")
        (tmp_path / "sbin").mkdir()
        os.link(primary, tmp_path / "sbin" / "zcat")

        result = find_hardlinks(tmp_path)
        assert result == {
            str(tmp_path / "bin" / "gunzip"): [
                str(tmp_path / "bin" / "gzip"),
                str(tmp_path / "sbin" / "zcat"),
            ],
        }

    def test_stable_across_calls(self, tmp_path: Path) -> None:
        a = _write(tmp_path / "x" / "a", "1")
        os.link(a, tmp_path / "y")
        assert find_hardlinks(tmp_path) == find_hardlinks(tmp_path)

    def test_symlinks_ignored(self, tmp_path: Path) -> None:
        target = _write(tmp_path / "lib" / "libz.so.1.2.11", "so")
        (tmp_path / "lib" / "libz.so").symlink_to(target)
        assert find_hardlinks(tmp_path) == {}


class TestRestoreHardlinks:
    def test_overwrites_existing_copy(self, tmp_path: Path) -> None:
        primary = _write(tmp_path / "file1", "content")
        copy = _write(tmp_path / "file2", "content")
        assert os.stat(primary).st_ino != os.stat(copy).st_ino

        count = restore_hardlinks({str(primary): [str(copy)]})
        assert count == 1
        assert os.stat(primary).st_ino == os.stat(copy).st_ino
        assert os.stat(primary).st_nlink == 2

    def test_creates_missing_secondaries(self, tmp_path: Path) -> None:
        primary = _write(tmp_path / "bin" / "file1", "x")
        secondaries = [str(tmp_path / "bin" / "file2"), str(tmp_path / "libexec" / "file3")]
        restore_hardlinks({str(primary): secondaries})
        for s in secondaries:
            assert os.path.samefile(primary, s)
        assert not list(tmp_path.rglob("*.pkgforge-link"))

    def test_empty_map(self) -> None:
        assert restore_hardlinks({}) == 0


class TestHardlinkMapCodec:
    def test_dump_empty(self) -> None:
        assert parse_hardlink_map(dump_hardlink_map({})) == {}

    def test_parse_blank_body(self) -> None:
        assert parse_hardlink_map("\n\n") == {}

    def test_parse_git_log_body(self) -> None:
        body = '{\n  "/opt/demo/bin/file1": [\n    "/opt/demo/bin/file2"\n  ]\n}\n\n'
        assert parse_hardlink_map(body) == {"/opt/demo/bin/file1": ["/opt/demo/bin/file2"]}

    def test_parse_non_object(self) -> None:
        with pytest.raises(ValueError, match="不是 JSON 对象"):
            parse_hardlink_map("[1, 2]")
