"""网络工具 - URL 协议校验与代理环境变量解析

代理相关环境变量按「原样 → 全小写 → 全大写」顺序查找:
  HTTP_PROXY        代理地址，缺省协议时补 http://
  HTTP_PROXY_USER   代理用户名（仅当代理地址未内嵌凭据时使用）
  HTTP_PROXY_PASS   代理密码（同上）
  no_proxy          逗号分隔的主机名后缀，命中则直连
"""

from __future__ import annotations

import os
import re
from urllib.parse import quote, urlsplit, urlunsplit

from pkgforge.core.exceptions import UnsupportedSchemeError

SUPPORTED_SCHEMES = frozenset(("http", "https", "ftp", "file"))

_SCHEME_RE = re.compile(r"^https?:", re.IGNORECASE)


def validate_url_scheme(url: str, *, context: str = "") -> str:
    """校验 URL 协议在支持范围内，返回小写协议名

    Raises:
        UnsupportedSchemeError: 协议不在白名单内
    """
    scheme = urlsplit(url).scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        label = f" ({context})" if context else ""
        raise UnsupportedSchemeError(
            f"不知道如何从该地址下载{label}: {url}"
        )
    return scheme


def get_env(name: str) -> str | None:
    """按原样、全小写、全大写的顺序查找环境变量"""
    for key in (name, name.lower(), name.upper()):
        value = os.environ.get(key)
        if value:
            return value
    return None


def http_proxy() -> str | None:
    """由 HTTP_PROXY* 环境变量构造代理 URL，未配置时返回 None"""
    proxy = get_env("HTTP_PROXY")
    if not proxy:
        return None
    if not _SCHEME_RE.match(proxy):
        proxy = f"http://{proxy}"

    parts = urlsplit(proxy)
    if parts.username:
        return proxy

    user = get_env("HTTP_PROXY_USER")
    if not user:
        return proxy
    password = get_env("HTTP_PROXY_PASS")
    creds = quote(user, safe="")
    if password:
        creds += ":" + quote(password, safe="")
    netloc = f"{creds}@{parts.netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def excluded_from_proxy(host: str | None) -> bool:
    """目标主机是否命中 no_proxy 后缀列表

    例: no_proxy="example.com, localhost" 时 www.example.com 直连。
    """
    if not host:
        return False
    no_proxy = get_env("no_proxy") or ""
    patterns = [p.strip() for p in no_proxy.split(",")]
    return any(p and host.endswith(p) for p in patterns)
