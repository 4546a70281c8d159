"""
主机列表及运行参数配置
"""
import ipaddress
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from ..errors import ConfigError, HostParseError
from ..interfaces import HostConfigManagerInterface
from .batch_collector import DEFAULT_CONCURRENCY
from .host_parser import parse_host_port
from .renderers import RENDERERS


TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off', ''}

_LABEL = r'(?!-)[A-Za-z0-9-]{1,63}(?<!-)'
HOSTNAME_PATTERN = re.compile(rf'^(?:{_LABEL}\.)*{_LABEL}$')


def split_host_list(value: str) -> List[str]:
    """按逗号拆分主机列表，保留顺序和重复项，丢弃空项"""
    return [item.strip() for item in value.split(',') if item.strip()]


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_number(name: str, value: str, cast, minimum):
    try:
        number = cast(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if number < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {value!r}")
    return number


@dataclass
class FetcherConfig:
    """运行参数"""
    skip_verify: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = 10.0
    max_retries: int = 0
    output_format: str = 'text'
    sns_topic_arn: Optional[str] = None
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> 'FetcherConfig':
        """
        从环境变量读取配置

        Args:
            environ: 环境变量字典，默认 os.environ

        Returns:
            FetcherConfig: 配置

        Raises:
            ConfigError: 配置值无效
        """
        env = os.environ if environ is None else environ

        output_format = env.get('OUTPUT_FORMAT', 'text').strip().lower() or 'text'
        if output_format not in RENDERERS:
            raise ConfigError(
                f"OUTPUT_FORMAT must be one of {', '.join(RENDERERS)}, got {output_format!r}"
            )

        return cls(
            skip_verify=_parse_bool('TLS_SKIP_VERIFY', env.get('TLS_SKIP_VERIFY', '')),
            concurrency=_parse_number(
                'FETCH_CONCURRENCY', env.get('FETCH_CONCURRENCY', str(DEFAULT_CONCURRENCY)), int, 1
            ),
            timeout=_parse_number('FETCH_TIMEOUT', env.get('FETCH_TIMEOUT', '10'), float, 0.1),
            max_retries=_parse_number('FETCH_MAX_RETRIES', env.get('FETCH_MAX_RETRIES', '0'), int, 0),
            output_format=output_format,
            sns_topic_arn=env.get('SNS_TOPIC_ARN') or None,
            log_level=env.get('LOG_LEVEL', 'INFO'),
        )

    def as_log_dict(self) -> Dict[str, Any]:
        """用于日志输出的配置字典"""
        return {
            'skip_verify': self.skip_verify,
            'concurrency': self.concurrency,
            'timeout': self.timeout,
            'max_retries': self.max_retries,
            'output_format': self.output_format,
            'sns_topic_arn': self.sns_topic_arn or '',
            'log_level': self.log_level,
        }


class HostListConfig(HostConfigManagerInterface):
    """主机列表配置管理器"""

    def __init__(self, env_var_name: str = "HOSTS"):
        """
        初始化主机列表配置管理器

        Args:
            env_var_name: 环境变量名称，默认为"HOSTS"
        """
        self.env_var_name = env_var_name
        self.logger = logging.getLogger(__name__)

    def get_hosts(self) -> List[str]:
        """
        从环境变量获取主机列表（逗号分隔）

        格式无效的项也会保留，由获取阶段写入该主机的错误信息。

        Returns:
            List[str]: 主机列表
        """
        hosts = split_host_list(os.getenv(self.env_var_name, ""))

        if not hosts:
            self.logger.warning(f"环境变量 {self.env_var_name} 为空")
            return []

        invalid = [host for host in hosts if not self.validate_host(host)]
        if invalid:
            self.logger.warning(f"以下主机格式可疑，将在获取时报告错误: {', '.join(invalid)}")

        self.logger.info(f"成功加载 {len(hosts)} 个主机")
        return hosts

    def validate_host(self, hostport: str) -> bool:
        """
        验证 host[:port] 格式

        Args:
            hostport: 主机

        Returns:
            bool: 是否有效
        """
        if not hostport or not isinstance(hostport, str):
            return False

        try:
            host, port = parse_host_port(hostport)
        except HostParseError:
            return False

        if port.isdigit() and not 0 < int(port) < 65536:
            return False

        try:
            ipaddress.ip_address(host)
            return True
        except ValueError:
            pass

        if len(host) > 253:
            return False

        return bool(HOSTNAME_PATTERN.match(host))
