"""统一异常体系

所有业务异常继承 PkgForgeError，按失败类型划分:
- 拉取阶段: UnsupportedSchemeError / RedirectTooDeepError / TransportError
- 校验阶段: IntegrityError
- 解压阶段: ExtractionError
- 快照缓存: CheckpointStoreError
CLI 层据此输出友好提示，编排层据此决定是否中止整条构建链。
"""

from __future__ import annotations


class PkgForgeError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(PkgForgeError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(PkgForgeError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class FetchError(PkgForgeError):
    """源码包拉取失败（网络类错误基类）"""

    code = "FETCH_ERROR"


class UnsupportedSchemeError(FetchError):
    """不支持的 URI 协议，描述符本身有误，不重试"""

    code = "UNSUPPORTED_SCHEME"


class RedirectTooDeepError(FetchError):
    """HTTP 重定向次数超出上限"""

    code = "REDIRECT_TOO_DEEP"


class TransportError(FetchError):
    """服务端返回非成功、非重定向的响应"""

    code = "TRANSPORT_ERROR"

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class IntegrityError(PkgForgeError):
    """下载文件的摘要与期望值不一致"""

    code = "INTEGRITY_ERROR"

    def __init__(self, message: str, expected: str = "", actual: str = "") -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ExtractionError(PkgForgeError):
    """源码包解压失败"""

    code = "EXTRACTION_ERROR"


class CheckpointStoreError(PkgForgeError):
    """快照存储（git）命令返回非零状态"""

    code = "CHECKPOINT_STORE_ERROR"


class ExecutionError(PkgForgeError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"
