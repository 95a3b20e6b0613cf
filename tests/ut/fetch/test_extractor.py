"""归档解压分派测试"""

from __future__ import annotations

import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from pkgforge.core.exceptions import ExtractionError
from pkgforge.core.fetch.extractor import ArchiveExtractor, archive_format
from pkgforge.utils.shell import CommandResult, set_executor


def _tar(path: Path, mode: str, members: dict[str, bytes]) -> Path:
    with tarfile.open(path, mode) as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return path


@pytest.mark.parametrize(("filename", "fmt"), [
    ("zlib-1.2.11.tar.gz", "gztar"),
    ("zlib.tgz", "gztar"),
    ("bzip2-1.0.8.tar.bz2", "bztar"),
    ("xz-5.2.tar.xz", "xztar"),
    ("xz-5.2.txz", "xztar"),
    ("7zip.7z", "7z"),
    ("cacerts.ZIP", "zip"),
    ("cacert.pem", "copy"),
    ("install.sh", "copy"),
])
def test_archive_format(filename: str, fmt: str) -> None:
    assert archive_format(filename) == fmt


class TestArchiveExtractor:
    @pytest.mark.parametrize(("suffix", "mode"), [
        (".tar.gz", "w:gz"),
        (".tar.bz2", "w:bz2"),
        (".tar.xz", "w:xz"),
    ])
    def test_tarballs(self, tmp_path: Path, suffix: str, mode: str) -> None:
        archive = _tar(tmp_path / f"pkg-1.0{suffix}", mode, {"pkg-1.0/README": b"hi"})
        src = tmp_path / "src"
        ArchiveExtractor().extract(archive, src, src / "pkg-1.0")
        assert (src / "pkg-1.0" / "README").read_bytes() == b"hi"

    def test_zip(self, tmp_path: Path) -> None:
        archive = tmp_path / "pkg-1.0.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("pkg-1.0/setup.py", "print('x')")
        src = tmp_path / "src"
        ArchiveExtractor().extract(archive, src, src / "pkg-1.0")
        assert (src / "pkg-1.0" / "setup.py").read_text() == "print('x')"

    def test_unknown_extension_copied(self, tmp_path: Path) -> None:
        archive = tmp_path / "cacert.pem"
        archive.write_text("-----BEGIN CERTIFICATE-----")
        project_dir = tmp_path / "src" / "cacerts-2024"
        result = ArchiveExtractor().extract(archive, tmp_path / "src", project_dir)
        assert result == project_dir
        assert (project_dir / "cacert.pem").read_text() == "-----BEGIN CERTIFICATE-----"

    def test_seven_zip_command(self, tmp_path: Path, make_executor) -> None:
        executor = make_executor()
        set_executor(executor)
        archive = tmp_path / "tools.7z"
        archive.write_bytes(b"7z")
        src = tmp_path / "src"
        ArchiveExtractor().extract(archive, src, src / "tools")
        assert executor.commands == [["7z", "x", str(archive), f"-o{src}", "-r", "-y"]]

    def test_seven_zip_failure(self, tmp_path: Path, make_executor) -> None:
        archive = tmp_path / "tools.7z"
        archive.write_bytes(b"7z")
        cmd = ("7z", "x", str(archive), f"-o{tmp_path / 'src'}", "-r", "-y")
        set_executor(make_executor({cmd: CommandResult(2, "", "Data Error")}))
        with pytest.raises(ExtractionError, match="Data Error"):
            ArchiveExtractor().extract(archive, tmp_path / "src", tmp_path / "src" / "tools")

    def test_unsafe_member_rejected(self, tmp_path: Path) -> None:
        archive = _tar(tmp_path / "evil.tar.gz", "w:gz", {"../escape.txt": b"x"})
        with pytest.raises(ExtractionError):
            ArchiveExtractor().extract(archive, tmp_path / "src", tmp_path / "src" / "evil")
        assert not (tmp_path / "escape.txt").exists()

    def test_missing_archive(self, tmp_path: Path) -> None:
        with pytest.raises(ExtractionError):
            ArchiveExtractor().extract(tmp_path / "none.tar.gz", tmp_path / "src", tmp_path / "src" / "x")
