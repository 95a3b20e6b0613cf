"""源码包拉取器

职责:
- 判断本地源码包是否需要重新下载（缺失或摘要不符）
- 按 URI 协议分派下载（HTTP(S) / FTP / 本地），整体失败重试
- 下载后重新校验摘要，防止传输损坏或被篡改
- 清理旧源码目录并解压

失败处理:
  - UnsupportedSchemeError: 立即失败，不重试
  - 其余下载错误（含 RedirectTooDeepError）: 计入重试预算，耗尽后报告并抛出
  - IntegrityError / ExtractionError: 不重试，向报告器说明一次后抛出
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pkgforge.core.checksum import checksum_matches, file_digest
from pkgforge.core.config import Config, get_config
from pkgforge.core.exceptions import (
    ExtractionError,
    IntegrityError,
    UnsupportedSchemeError,
    ValidationError,
)
from pkgforge.core.fetch.extractor import ArchiveExtractor
from pkgforge.core.fetch.transport import FtpTransport, HttpTransport, LocalTransport
from pkgforge.core.models import Component
from pkgforge.core.reporter import ErrorReporter, Reporter
from pkgforge.utils.net import validate_url_scheme

logger = logging.getLogger(__name__)


class NetFetcher:
    """网络源码包拉取器 - 本地缓存优先 + 远程下载 + 摘要校验"""

    def __init__(
        self,
        component: Component,
        *,
        config: Config | None = None,
        http: HttpTransport | None = None,
        ftp: FtpTransport | None = None,
        local: LocalTransport | None = None,
        reporter: Reporter | None = None,
        extractor: ArchiveExtractor | None = None,
    ) -> None:
        if component.source is None:
            raise ValidationError(f"组件 '{component.name}' 未定义 source")
        cfg = config or get_config()

        self.component = component
        self.source = component.source
        self.project_file = Path(
            component.project_file
            or Path(cfg.cache_dir) / (self.source.filename or f"{component.name}-{component.version}")
        )
        self.source_dir = Path(component.source_dir or cfg.source_dir)
        self.project_dir = Path(
            component.project_dir or self.source_dir / f"{component.name}-{component.version}"
        )
        self.attempts = cfg.download_attempts

        self.http = http or HttpTransport(timeout=cfg.fetch_timeout, max_redirects=cfg.max_redirects)
        self.ftp = ftp or FtpTransport(timeout=cfg.fetch_timeout)
        self.local = local or LocalTransport()
        self.reporter: Reporter = reporter or ErrorReporter()
        self.extractor = extractor or ArchiveExtractor()

    @property
    def name(self) -> str:
        return self.component.name

    @property
    def log_context(self) -> dict[str, str]:
        return {"component": self.component.log_key}

    def description(self) -> str:
        return (
            f"source URI:     {self.source.url}\n"
            f"checksum:       {self.source.checksum}\n"
            f"local location: {self.project_file}\n"
        )

    def version_guid(self) -> str:
        return f"{self.source.algorithm}:{self.source.checksum}"

    # ------------------------------------------------------------------
    # 拉取
    # ------------------------------------------------------------------

    def fetch_required(self) -> bool:
        """本地源码包缺失或摘要不符时需要下载"""
        return not checksum_matches(
            self.project_file, self.source.checksum, self.source.algorithm,
        )

    def fetch(self) -> bool:
        """按需下载并校验，返回是否发生了下载"""
        if not self.fetch_required():
            logger.info(
                "源码包缓存已是最新: %s -> %s", self.name, self.project_file,
                extra=self.log_context,
            )
            return False
        self.download()
        try:
            self.verify_checksum()
        except IntegrityError as e:
            self.reporter.explain(
                e, self,
                f"源码包摘要校验失败: {self.source.url} -> {self.project_file}",
            )
            raise
        return True

    def download(self) -> None:
        """下载源码包，失败时向报告器说明一次后重新抛出"""
        try:
            self._download_with_retry()
        except Exception as e:
            self.reporter.explain(
                e, self,
                f"拉取源码失败: {self.source.url} ({type(e).__name__}: {str(e).strip()})",
            )
            raise

    def _download_with_retry(self) -> None:
        remaining = self.attempts
        while True:
            try:
                self._download_once()
                return
            except UnsupportedSchemeError:
                raise
            except Exception as e:
                self.project_file.unlink(missing_ok=True)
                remaining -= 1
                if remaining <= 0:
                    raise
                logger.warning(
                    "下载失败，重试 (%d/%d): %s - %s",
                    self.attempts - remaining, self.attempts, self.source.url, e,
                    extra=self.log_context,
                )

    def _download_once(self) -> None:
        if self.source.warning:
            logger.warning("%s", self.source.warning)
        logger.info(
            "拉取 %s <- %s", self.project_file, self.source.url, extra=self.log_context,
        )

        scheme = self.source.scheme
        if scheme != "file":
            validate_url_scheme(self.source.url, context=self.name)

        if scheme in ("http", "https"):
            # 禁用透明解压，原始字节才能与摘要比对
            headers = {"Accept-Encoding": ""}
            if self.source.cookie:
                headers["Cookie"] = self.source.cookie
            self.http.get(self.source.url, self.project_file, headers)
        elif scheme == "ftp":
            self.ftp.get(self.source.url, self.project_file)
        else:
            self.local.get(self.source.url, self.project_file)

    def verify_checksum(self) -> None:
        """重新计算本地源码包摘要，不符时抛 IntegrityError"""
        actual = file_digest(self.project_file, self.source.algorithm)
        expected = self.source.checksum.strip().lower()
        if actual != expected:
            logger.error(
                "摘要不匹配 %s: 期望 %s, 实际 %s", self.name, expected, actual,
            )
            raise IntegrityError(
                f"下载文件 {self.project_file} 的 {self.source.algorithm} 摘要不匹配: "
                f"期望 {expected}, 实际 {actual}",
                expected=expected, actual=actual,
            )
        logger.info("  校验和通过: %s", self.project_file.name)

    # ------------------------------------------------------------------
    # 解压
    # ------------------------------------------------------------------

    def clean(self) -> None:
        """删除已有源码目录后重新解压"""
        if self.project_dir.exists():
            logger.info("清理已有源码目录: %s", self.project_dir)
            shutil.rmtree(self.project_dir)
        self.extract()

    def extract(self) -> Path:
        try:
            return self.extractor.extract(self.project_file, self.source_dir, self.project_dir)
        except ExtractionError as e:
            self.reporter.explain(
                e, self,
                f"解压源码包失败: {self.project_file} ({type(e).__name__}: {str(e).strip()})",
            )
            raise
