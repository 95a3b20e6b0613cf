"""源码包拉取模块

- transport.py: HTTP(S) / FTP / 本地传输
- extractor.py: 按扩展名解压
- fetcher.py: 拉取、重试、摘要校验
"""

from pkgforge.core.fetch.extractor import ArchiveExtractor, archive_format
from pkgforge.core.fetch.fetcher import NetFetcher
from pkgforge.core.fetch.transport import FtpTransport, HttpTransport, LocalTransport

__all__ = [
    "ArchiveExtractor",
    "FtpTransport",
    "HttpTransport",
    "LocalTransport",
    "NetFetcher",
    "archive_format",
]
