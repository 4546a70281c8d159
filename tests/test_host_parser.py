"""
host:port 解析测试
"""
import pytest

from ssl_certificate_fetcher.errors import HostParseError
from ssl_certificate_fetcher.services.host_parser import (
    DEFAULT_PORT,
    join_host_port,
    parse_host_port,
)


class TestParseHostPort:
    """host:port 解析测试类"""

    @pytest.mark.parametrize("hostport, expected", [
        ("example.com", ("example.com", DEFAULT_PORT)),
        ("example.com:443", ("example.com", "443")),
        ("imap.example.com:993", ("imap.example.com", "993")),
        ("smtp.example.com:465", ("smtp.example.com", "465")),
        ("localhost", ("localhost", "443")),
        ("127.0.0.1:8443", ("127.0.0.1", "8443")),
        ("[::1]:8443", ("::1", "8443")),
        ("[2001:db8::1]", ("2001:db8::1", "443")),
        ("example.com:https", ("example.com", "https")),
    ])
    def test_valid_inputs(self, hostport, expected):
        """测试有效输入"""
        assert parse_host_port(hostport) == expected

    def test_default_port_is_443(self):
        """测试默认端口"""
        assert DEFAULT_PORT == "443"

    def test_bare_hostname_is_not_ipv6(self):
        """测试不含冒号的主机名不会被当作IPv6"""
        host, port = parse_host_port("mail")
        assert host == "mail"
        assert port == "443"

    @pytest.mark.parametrize("hostport, reason", [
        ("::1", "too many colons in address"),
        ("a:b:c", "too many colons in address"),
        ("[::1", "missing ']' in address"),
        ("[::1]:443:1", "too many colons in address"),
        ("[::1]x", "unexpected characters after ']' in address"),
        ("ex[ample.com:443", "unexpected '[' in address"),
        ("example].com", "unexpected ']' in address"),
        ("example.com:", "missing port number"),
        (":443", "missing host in address"),
        ("", "missing host in address"),
    ])
    def test_malformed_inputs(self, hostport, reason):
        """测试格式错误的输入"""
        with pytest.raises(HostParseError) as exc_info:
            parse_host_port(hostport)

        assert exc_info.value.reason == reason
        assert str(exc_info.value) == f"address {hostport}: {reason}"

    def test_parse_error_is_value_error(self):
        """测试解析错误同时是 ValueError"""
        with pytest.raises(ValueError):
            parse_host_port("a:b:c")


class TestJoinHostPort:
    """主机端口拼接测试类"""

    def test_hostname(self):
        assert join_host_port("example.com", "443") == "example.com:443"

    def test_ipv6(self):
        assert join_host_port("::1", "8443") == "[::1]:8443"
