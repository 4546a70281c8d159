"""
异常定义
"""


class CertificateFetcherError(Exception):
    """证书获取器异常基类"""

    pass


class EmptyHostListError(CertificateFetcherError, ValueError):
    """主机列表为空（批处理级别的输入校验错误）"""

    def __init__(self, message: str = "need at least one host"):
        super().__init__(message)


class HostParseError(CertificateFetcherError, ValueError):
    """host:port 格式无效"""

    def __init__(self, hostport: str, reason: str):
        self.hostport = hostport
        self.reason = reason
        super().__init__(f"address {hostport}: {reason}")


class CertificateFetchError(CertificateFetcherError):
    """握手成功但无法取得证书"""

    pass


class RenderError(CertificateFetcherError):
    """渲染失败，属于程序不变量被破坏"""

    pass


class ConfigError(CertificateFetcherError):
    """配置相关错误"""

    pass
