"""
错误处理服务
"""
import socket
import ssl
import time
from typing import Callable, Any, Dict, Iterable
from datetime import datetime, timezone
import logging

from ..errors import CertificateFetchError, HostParseError
from ..models import CertificateRecord


# 错误消息关键字 -> 错误类别，按顺序匹配
ERROR_CATEGORIES = [
    ('verification', ('certificate verify failed', 'hostname mismatch', "doesn't match")),
    ('timeout', ('timed out', 'timeout')),
    ('dns', ('name or service not known', 'nodename nor servname', 'name resolution',
             'no address associated')),
    ('refused', ('connection refused',)),
    ('reset', ('connection reset',)),
    ('unreachable', ('network is unreachable', 'no route to host')),
    ('handshake', ('handshake', 'wrong version number', 'ssl', 'tls')),
]


class NetworkErrorHandler:
    """网络错误处理器"""

    def __init__(self, max_retries: int = 0, base_delay: float = 1.0):
        """
        初始化网络错误处理器

        Args:
            max_retries: 最大重试次数，默认不重试
            base_delay: 基础延迟时间（秒）
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.logger = logging.getLogger(__name__)

        # 可重试的网络错误类型
        self.retryable_errors = {
            socket.timeout,
            socket.gaierror,  # DNS解析错误
            ConnectionRefusedError,
            ConnectionResetError,
            OSError,
        }

        # 不可重试的错误类型
        self.non_retryable_errors = {
            ssl.CertificateError,
            HostParseError,
            CertificateFetchError,
            ValueError,
            TypeError,
        }

    def with_retry(self, func: Callable, *args, **kwargs) -> Any:
        """
        带重试机制执行函数

        Args:
            func: 要执行的函数
            *args: 函数参数
            **kwargs: 函数关键字参数

        Returns:
            Any: 函数执行结果

        Raises:
            Exception: 不可重试的错误，或重试次数用尽后的最后一个异常
        """
        for attempt in range(self.max_retries + 1):
            try:
                return func(*args, **kwargs)

            except Exception as e:
                if not self._is_retryable_error(e):
                    raise

                if attempt == self.max_retries:
                    if self.max_retries:
                        self.logger.error(f"重试次数用尽，最终失败: {type(e).__name__}: {str(e)}")
                    raise

                # 指数退避
                delay = self.base_delay * (2 ** attempt)

                self.logger.warning(
                    f"尝试 {attempt + 1}/{self.max_retries + 1} 失败: {type(e).__name__}: {str(e)}，"
                    f"{delay:.1f}秒后重试"
                )

                time.sleep(delay)

    def _is_retryable_error(self, error: Exception) -> bool:
        """
        判断错误是否可重试

        Args:
            error: 异常对象

        Returns:
            bool: 是否可重试
        """
        error_type = type(error)

        if any(issubclass(error_type, non_retryable) for non_retryable in self.non_retryable_errors):
            return False

        # 握手类SSL错误不重试，连接中途断开除外
        if isinstance(error, ssl.SSLError) and not isinstance(error, (ssl.SSLEOFError, ssl.SSLZeroReturnError)):
            return False

        if any(issubclass(error_type, retryable) for retryable in self.retryable_errors):
            return True

        error_message = str(error).lower()
        retryable_messages = [
            'timeout',
            'timed out',
            'connection refused',
            'connection reset',
            'network is unreachable',
            'temporary failure',
        ]

        return any(msg in error_message for msg in retryable_messages)

    def describe_error(self, host: str, error: Exception) -> Dict[str, Any]:
        """
        生成单个主机的错误描述并记录日志

        Args:
            host: 主机
            error: 异常对象

        Returns:
            Dict[str, Any]: 错误信息
        """
        error_info = {
            'host': host,
            'error_type': type(error).__name__,
            'error_message': error_message(error),
            'is_retryable': self._is_retryable_error(error),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(error)
        }

        self.logger.warning(
            f"主机 {host} 获取证书失败 ({error_info['error_type']}): {error_info['error_message']}"
        )

        return error_info

    def _get_suggested_action(self, error: Exception) -> str:
        error_message = str(error).lower()

        if isinstance(error, HostParseError):
            return "检查主机格式，应为 host 或 host:port"
        elif isinstance(error, socket.timeout):
            return "检查网络连接，考虑增加超时时间"
        elif isinstance(error, socket.gaierror):
            return "检查主机名是否正确，DNS服务器是否可用"
        elif isinstance(error, ConnectionRefusedError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(error, ssl.CertificateError):
            return "证书验证失败，可设置 TLS_SKIP_VERIFY 跳过校验后重新获取"
        elif isinstance(error, ssl.SSLError):
            if 'wrong version number' in error_message:
                return "目标端口可能不是TLS服务"
            return "SSL握手失败，检查服务器SSL/TLS配置"
        elif 'network is unreachable' in error_message or 'no route to host' in error_message:
            return "网络不可达，检查防火墙和路由"
        else:
            return "检查网络连接和服务器状态"

    def get_error_statistics(self, records: Iterable[CertificateRecord]) -> Dict[str, Any]:
        """
        按错误类别统计失败记录

        Args:
            records: 证书记录

        Returns:
            Dict[str, Any]: 错误统计
        """
        categories: Dict[str, int] = {}
        failed_hosts = []

        for record in records:
            if record.is_valid:
                continue
            category = classify_error_message(record.error)
            categories[category] = categories.get(category, 0) + 1
            failed_hosts.append(record.domain_name)

        most_common = max(categories.items(), key=lambda x: x[1]) if categories else None

        return {
            'total_errors': len(failed_hosts),
            'error_categories': categories,
            'failed_hosts': failed_hosts,
            'most_common_error': most_common[0] if most_common else None,
            'most_common_error_count': most_common[1] if most_common else 0
        }


def error_message(error: Exception) -> str:
    """异常的消息文本，空消息时使用异常类名"""
    return str(error) or type(error).__name__


def classify_error_message(message: str) -> str:
    """根据错误消息判断错误类别"""
    if message.startswith('address '):
        return 'parse'
    lowered = message.lower()
    for category, keywords in ERROR_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return 'other'
