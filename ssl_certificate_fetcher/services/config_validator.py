"""
配置验证服务
"""
import os
import re
from typing import Dict, Any
import logging

from ..errors import ConfigError
from .fetcher_config import FetcherConfig, HostListConfig, split_host_list


class ConfigValidator:
    """配置验证器"""

    def __init__(self):
        """初始化配置验证器"""
        self.logger = logging.getLogger(__name__)
        self.host_config = HostListConfig()

        # 必需的环境变量
        self.required_env_vars = {
            'HOSTS': '主机列表（逗号分隔，host 或 host:port）'
        }

        # 可选的环境变量
        self.optional_env_vars = {
            'TLS_SKIP_VERIFY': '跳过证书链校验',
            'FETCH_CONCURRENCY': '最大并发数',
            'FETCH_TIMEOUT': '连接超时时间',
            'FETCH_MAX_RETRIES': '网络错误重试次数',
            'OUTPUT_FORMAT': '输出格式',
            'SNS_TOPIC_ARN': 'SNS主题ARN',
            'LOG_LEVEL': '日志级别',
        }

    def validate_all_configurations(self) -> Dict[str, Any]:
        """
        验证所有配置

        Returns:
            Dict[str, Any]: 验证结果
        """
        validation_result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'configurations': {}
        }

        checks = [
            ('environment', self.validate_environment_variables(), True),
            ('hosts', self.validate_hosts_configuration(), True),
            ('fetcher', self.validate_fetcher_settings(), True),
            # SNS为可选功能，错误只作为警告
            ('sns', self.validate_sns_configuration(), False),
            ('lambda', self.validate_lambda_configuration(), False),
        ]

        for name, result, errors_are_fatal in checks:
            validation_result['configurations'][name] = result
            if errors_are_fatal:
                if not result['is_valid']:
                    validation_result['is_valid'] = False
                    validation_result['errors'].extend(result['errors'])
            else:
                validation_result['warnings'].extend(result['errors'])
            validation_result['warnings'].extend(result['warnings'])

        return validation_result

    def validate_environment_variables(self) -> Dict[str, Any]:
        """
        验证环境变量

        Returns:
            Dict[str, Any]: 环境变量验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'missing_required': [],
            'missing_optional': [],
            'present_vars': {}
        }

        for var_name, description in self.required_env_vars.items():
            value = os.getenv(var_name)
            if not value:
                result['missing_required'].append({'name': var_name, 'description': description})
                result['errors'].append(f"缺少必需的环境变量: {var_name} ({description})")
                result['is_valid'] = False
            else:
                result['present_vars'][var_name] = self._sanitize_env_value(var_name, value)

        for var_name, description in self.optional_env_vars.items():
            value = os.getenv(var_name)
            if not value:
                result['missing_optional'].append({'name': var_name, 'description': description})
            else:
                result['present_vars'][var_name] = self._sanitize_env_value(var_name, value)

        return result

    def validate_hosts_configuration(self) -> Dict[str, Any]:
        """
        验证主机列表

        Returns:
            Dict[str, Any]: 主机配置验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'total_hosts': 0,
            'valid_hosts': [],
            'invalid_hosts': []
        }

        hosts = split_host_list(os.getenv('HOSTS', ''))
        result['total_hosts'] = len(hosts)

        if not hosts:
            result['is_valid'] = False
            result['errors'].append("HOSTS环境变量为空")
            return result

        for host in hosts:
            if self.host_config.validate_host(host):
                result['valid_hosts'].append(host)
            else:
                result['invalid_hosts'].append(host)
                result['warnings'].append(f"主机格式无效: {host}")

        return result

    def validate_fetcher_settings(self) -> Dict[str, Any]:
        """
        验证获取参数（并发数、超时、输出格式等）

        Returns:
            Dict[str, Any]: 参数验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'settings': None
        }

        try:
            config = FetcherConfig.from_env()
        except ConfigError as e:
            result['is_valid'] = False
            result['errors'].append(str(e))
            return result

        result['settings'] = config.as_log_dict()

        if config.skip_verify:
            result['warnings'].append("已启用 TLS_SKIP_VERIFY，证书链不会被校验")
        if config.concurrency > 512:
            result['warnings'].append(f"并发数过大: {config.concurrency}，可能耗尽文件描述符")

        return result

    def validate_sns_configuration(self) -> Dict[str, Any]:
        """
        验证SNS配置

        Returns:
            Dict[str, Any]: SNS配置验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'topic_arn': None,
            'arn_format_valid': False
        }

        topic_arn = os.getenv('SNS_TOPIC_ARN')

        if not topic_arn:
            result['is_valid'] = False
            result['errors'].append("SNS_TOPIC_ARN环境变量未设置，报告不会发布")
            return result

        result['topic_arn'] = topic_arn

        arn_pattern = r'^arn:aws:sns:[a-z0-9-]+:\d{12}:[a-zA-Z0-9_-]+$'
        if re.match(arn_pattern, topic_arn):
            result['arn_format_valid'] = True
        else:
            result['is_valid'] = False
            result['errors'].append(f"SNS主题ARN格式无效: {topic_arn}")

        return result

    def validate_lambda_configuration(self) -> Dict[str, Any]:
        """
        验证Lambda配置

        Returns:
            Dict[str, Any]: Lambda配置验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'function_name': None,
            'timeout': None
        }

        function_name = os.getenv('AWS_LAMBDA_FUNCTION_NAME')
        if function_name:
            result['function_name'] = function_name
        else:
            result['warnings'].append("AWS_LAMBDA_FUNCTION_NAME未设置，可能不在Lambda环境中运行")

        timeout = os.getenv('AWS_LAMBDA_FUNCTION_TIMEOUT')
        if timeout:
            try:
                timeout_seconds = int(timeout)
                result['timeout'] = timeout_seconds

                if timeout_seconds < 30:
                    result['warnings'].append(f"Lambda超时时间过短: {timeout_seconds}秒，建议至少30秒")
            except ValueError:
                result['warnings'].append(f"Lambda超时时间格式无效: {timeout}")

        return result

    def _sanitize_env_value(self, var_name: str, value: str) -> str:
        """
        隐藏环境变量中的敏感信息

        Args:
            var_name: 变量名
            value: 变量值

        Returns:
            str: 清理后的值
        """
        if var_name == 'SNS_TOPIC_ARN' and value.startswith('arn:'):
            parts = value.split(':')
            if len(parts) >= 6:
                return f"{':'.join(parts[:3])}:***:{parts[-2]}:{parts[-1]}"
            return "***"

        return value

    def get_configuration_summary(self) -> str:
        """
        获取配置摘要

        Returns:
            str: 配置摘要文本
        """
        validation_result = self.validate_all_configurations()

        lines = [
            "配置验证摘要",
            "=" * 30
        ]

        if validation_result['is_valid']:
            lines.append("✅ 配置验证通过")
        else:
            lines.append("❌ 配置验证失败")

        if validation_result['errors']:
            lines.append("\n错误:")
            for error in validation_result['errors']:
                lines.append(f"  • {error}")

        if validation_result['warnings']:
            lines.append("\n警告:")
            for warning in validation_result['warnings']:
                lines.append(f"  • {warning}")

        lines.append("\n配置详情:")

        env_config = validation_result['configurations'].get('environment', {})
        for var_name, var_value in env_config.get('present_vars', {}).items():
            lines.append(f"  {var_name}: {var_value}")

        hosts_config = validation_result['configurations'].get('hosts', {})
        lines.append(f"  主机数量: {hosts_config.get('total_hosts', 0)}")

        return "\n".join(lines)
