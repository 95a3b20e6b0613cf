"""源码包传输层 - HTTP(S) / FTP / 本地文件

职责:
- HTTP(S) GET，手动跟随重定向（有跳数上限），按环境变量走代理
- FTP 被动模式匿名下载
- 本地文件复制
每个 get() 只做一次尝试，重试由 NetFetcher 负责。
"""

from __future__ import annotations

import ftplib
import logging
import shutil
import urllib.error
import urllib.request
from email.message import Message
from pathlib import Path
from typing import IO
from urllib.parse import unquote, urljoin, urlsplit

from pkgforge.core.exceptions import RedirectTooDeepError, TransportError
from pkgforge.utils.net import excluded_from_proxy, http_proxy

logger = logging.getLogger(__name__)

DEFAULT_MAX_REDIRECTS = 10

_REDIRECT_CODES = frozenset((301, 302, 303, 307, 308))


def _write_stream(body: IO[bytes], dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    with open(dest, "wb") as f:
        shutil.copyfileobj(body, f)


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    """关闭 urllib 自动重定向，3xx 以 HTTPError 形式交还调用方"""

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # noqa: ANN001
        return None


class HttpTransport:
    """HTTP(S) 下载"""

    def __init__(self, timeout: int = 60, max_redirects: int = DEFAULT_MAX_REDIRECTS) -> None:
        self.timeout = timeout
        self.max_redirects = max_redirects

    def get(
        self,
        url: str,
        dest: Path,
        headers: dict[str, str] | None = None,
        limit: int | None = None,
    ) -> Path:
        """下载 url 到 dest，返回 dest

        Raises:
            RedirectTooDeepError: 重定向跳数耗尽（耗尽后不再发出请求）
            TransportError: 非成功、非重定向响应
        """
        remaining = self.max_redirects if limit is None else limit
        current = url
        while True:
            if remaining <= 0:
                raise RedirectTooDeepError(f"HTTP 重定向层数过深: {url}")
            logger.info("  GET %s (剩余重定向 %d 次)", current, remaining)

            status, resp_headers, body = self._open(current, dict(headers or {}))
            try:
                if 200 <= status < 300:
                    _write_stream(body, dest)
                    return dest
                if status in _REDIRECT_CODES:
                    location = resp_headers.get("Location")
                    if not location:
                        raise TransportError(
                            f"HTTP {status} 缺少 Location 头: {current}", status=status,
                        )
                    current = urljoin(current, location)
                    remaining -= 1
                    continue
                raise TransportError(f"HTTP {status}: {current}", status=status)
            finally:
                body.close()

    def _open(
        self, url: str, headers: dict[str, str],
    ) -> tuple[int, Message | dict[str, str], IO[bytes]]:
        """发出单次请求，返回 (状态码, 响应头, 响应体)"""
        host = urlsplit(url).hostname
        proxy = http_proxy()
        if proxy and not excluded_from_proxy(host):
            logger.debug("  使用代理访问 %s", host)
            proxies = {"http": proxy, "https": proxy}
        else:
            proxies = {}
        opener = urllib.request.build_opener(
            urllib.request.ProxyHandler(proxies), _NoRedirectHandler(),
        )
        req = urllib.request.Request(url, headers=headers, method="GET")
        try:
            resp = opener.open(req, timeout=self.timeout)  # nosec B310
        except urllib.error.HTTPError as e:
            return e.code, e.headers, e
        return resp.status, resp.headers, resp


class FtpTransport:
    """FTP 被动模式匿名下载"""

    def __init__(self, timeout: int = 60) -> None:
        self.timeout = timeout

    def get(self, url: str, dest: Path) -> Path:
        parts = urlsplit(url)
        if not parts.hostname:
            raise TransportError(f"FTP 地址缺少主机名: {url}")
        dest.parent.mkdir(parents=True, exist_ok=True)

        ftp = self._connect(parts.hostname, parts.port or ftplib.FTP_PORT)
        with ftp:
            ftp.login()
            ftp.set_pasv(True)
            with open(dest, "wb") as f:
                ftp.retrbinary(f"RETR {unquote(parts.path)}", f.write)
        return dest

    def _connect(self, host: str, port: int) -> ftplib.FTP:
        ftp = ftplib.FTP(timeout=self.timeout)
        ftp.connect(host, port)
        return ftp


class LocalTransport:
    """本地文件来源（file:// 或裸路径）"""

    def get(self, url: str, dest: Path) -> Path:
        parts = urlsplit(url)
        if parts.scheme.lower() == "file":
            src = Path(urllib.request.url2pathname(parts.path))
        else:
            src = Path(url)
        if not src.is_file():
            raise FileNotFoundError(f"本地源码包不存在: {src}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dest)
        return dest
