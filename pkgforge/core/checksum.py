"""文件摘要计算与比对"""

from __future__ import annotations

import hashlib
from pathlib import Path

from pkgforge.core.exceptions import ValidationError

_CHUNK_SIZE = 64 * 1024


def file_digest(path: str | Path, algorithm: str = "md5") -> str:
    """分块计算文件摘要，返回小写十六进制字符串"""
    try:
        h = hashlib.new(algorithm)
    except ValueError as e:
        raise ValidationError(f"不支持的摘要算法: {algorithm}") from e
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def checksum_matches(path: str | Path, expected: str, algorithm: str = "md5") -> bool:
    """文件存在且摘要与期望值一致时返回 True"""
    p = Path(path)
    if not p.is_file():
        return False
    return file_digest(p, algorithm) == expected.strip().lower()
