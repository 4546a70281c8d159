"""
host:port 解析服务
"""
from typing import Tuple

from ..errors import HostParseError


DEFAULT_PORT = "443"


def parse_host_port(hostport: str) -> Tuple[str, str]:
    """
    拆分 host 或 host:port，未指定端口时使用默认端口443

    支持方括号形式的IPv6地址（"[::1]:8443"、"[::1]"）。
    不带方括号且包含多个冒号的输入视为格式错误。

    Args:
        hostport: 原始输入

    Returns:
        Tuple[str, str]: (主机, 端口)

    Raises:
        HostParseError: 输入格式无效
    """
    if hostport.startswith('['):
        end = hostport.find(']')
        if end < 0:
            raise HostParseError(hostport, "missing ']' in address")

        host = hostport[1:end]
        rest = hostport[end + 1:]

        if not rest:
            port = DEFAULT_PORT
        elif rest.startswith(':'):
            port = rest[1:]
            if ':' in port:
                raise HostParseError(hostport, "too many colons in address")
        else:
            raise HostParseError(hostport, "unexpected characters after ']' in address")

        if '[' in host:
            raise HostParseError(hostport, "unexpected '[' in address")
        if ']' in rest:
            raise HostParseError(hostport, "unexpected ']' in address")
    else:
        colons = hostport.count(':')
        if colons == 0:
            host, port = hostport, DEFAULT_PORT
        elif colons == 1:
            host, port = hostport.split(':')
        else:
            raise HostParseError(hostport, "too many colons in address")

        if '[' in hostport:
            raise HostParseError(hostport, "unexpected '[' in address")
        if ']' in hostport:
            raise HostParseError(hostport, "unexpected ']' in address")

    if not host:
        raise HostParseError(hostport, "missing host in address")
    if not port:
        raise HostParseError(hostport, "missing port number")

    return host, port


def join_host_port(host: str, port: str) -> str:
    """拼接主机和端口，IPv6地址加方括号"""
    if ':' in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
