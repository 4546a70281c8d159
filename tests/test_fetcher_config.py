"""
配置测试
"""
import os
from unittest.mock import patch

import pytest

from ssl_certificate_fetcher.errors import ConfigError
from ssl_certificate_fetcher.services.fetcher_config import (
    FetcherConfig,
    HostListConfig,
    split_host_list,
)


class TestFetcherConfig:
    """运行参数测试类"""

    def test_defaults(self):
        """测试默认值"""
        config = FetcherConfig.from_env({})

        assert config.skip_verify is False
        assert config.concurrency == 128
        assert config.timeout == 10.0
        assert config.max_retries == 0
        assert config.output_format == 'text'
        assert config.sns_topic_arn is None
        assert config.log_level == 'INFO'

    def test_from_env_values(self):
        """测试读取环境变量"""
        config = FetcherConfig.from_env({
            'TLS_SKIP_VERIFY': 'yes',
            'FETCH_CONCURRENCY': '16',
            'FETCH_TIMEOUT': '2.5',
            'FETCH_MAX_RETRIES': '2',
            'OUTPUT_FORMAT': 'Markdown',
            'SNS_TOPIC_ARN': 'arn:aws:sns:eu-west-1:123456789012:reports',
            'LOG_LEVEL': 'DEBUG',
        })

        assert config.skip_verify is True
        assert config.concurrency == 16
        assert config.timeout == 2.5
        assert config.max_retries == 2
        assert config.output_format == 'markdown'
        assert config.sns_topic_arn == 'arn:aws:sns:eu-west-1:123456789012:reports'
        assert config.log_level == 'DEBUG'

    @patch.dict(os.environ, {'FETCH_CONCURRENCY': '8'}, clear=True)
    def test_from_os_environ(self):
        """测试默认读取 os.environ"""
        assert FetcherConfig.from_env().concurrency == 8

    @pytest.mark.parametrize("env, message", [
        ({'TLS_SKIP_VERIFY': 'maybe'}, "TLS_SKIP_VERIFY must be a boolean"),
        ({'FETCH_CONCURRENCY': 'many'}, "FETCH_CONCURRENCY must be a number"),
        ({'FETCH_CONCURRENCY': '0'}, "FETCH_CONCURRENCY must be at least 1"),
        ({'FETCH_TIMEOUT': '-1'}, "FETCH_TIMEOUT must be at least"),
        ({'FETCH_MAX_RETRIES': '-1'}, "FETCH_MAX_RETRIES must be at least 0"),
        ({'OUTPUT_FORMAT': 'xml'}, "OUTPUT_FORMAT must be one of"),
    ])
    def test_invalid_values(self, env, message):
        """测试无效配置"""
        with pytest.raises(ConfigError, match=message):
            FetcherConfig.from_env(env)

    def test_as_log_dict(self):
        """测试日志字典"""
        data = FetcherConfig().as_log_dict()

        assert data['concurrency'] == 128
        assert data['sns_topic_arn'] == ''


class TestHostListConfig:
    """主机列表配置测试类"""

    def setup_method(self):
        """测试前准备"""
        self.manager = HostListConfig()

    def test_split_host_list(self):
        """测试拆分主机列表"""
        assert split_host_list(" a.example.com, ,b.example.com:8443,a.example.com ") == [
            "a.example.com", "b.example.com:8443", "a.example.com"
        ]
        assert split_host_list("") == []

    @patch.dict(os.environ, {'HOSTS': 'example.com, imap.example.com:993, a:b:c'})
    def test_get_hosts_keeps_invalid_entries(self):
        """测试格式无效的主机也会保留"""
        assert self.manager.get_hosts() == ["example.com", "imap.example.com:993", "a:b:c"]

    @patch.dict(os.environ, {'HOSTS': '  '})
    def test_get_hosts_empty(self):
        """测试空列表"""
        assert self.manager.get_hosts() == []

    @patch.dict(os.environ, {'TARGETS': 'example.com'})
    def test_custom_env_var(self):
        """测试自定义环境变量名"""
        assert HostListConfig(env_var_name='TARGETS').get_hosts() == ["example.com"]

    def test_validate_host_valid(self):
        """测试有效主机"""
        valid_hosts = [
            "example.com",
            "sub.example.com:8443",
            "localhost",
            "127.0.0.1",
            "[::1]:443",
            "xn--fsq.com",
            "example.com:https",
        ]

        for host in valid_hosts:
            assert self.manager.validate_host(host) is True, f"主机 {host} 应该是有效的"

    def test_validate_host_invalid(self):
        """测试无效主机"""
        invalid_hosts = [
            "",
            None,
            "a:b:c",
            "example.com:0",
            "example.com:70000",
            "-example.com",
            "example-.com",
            "ex ample.com",
            "example..com",
            "a" * 254,
        ]

        for host in invalid_hosts:
            assert self.manager.validate_host(host) is False, f"主机 {host} 应该是无效的"
