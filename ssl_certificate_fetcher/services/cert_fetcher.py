"""
TLS证书获取服务
"""
import ssl
import socket
from typing import Optional
import logging

from cryptography import x509

from ..errors import CertificateFetchError, HostParseError
from ..interfaces import CertificateFetcherInterface
from ..models import CertificateRecord, LeafCertificate, format_timestamp
from .error_handler import NetworkErrorHandler
from .host_parser import join_host_port, parse_host_port


class TLSCertificateFetcher(CertificateFetcherInterface):
    """通过TLS握手获取叶子证书"""

    def __init__(self, timeout: float = 10.0, skip_verify: bool = False):
        """
        初始化TLS证书获取器

        Args:
            timeout: 连接及握手超时时间（秒）
            skip_verify: 是否跳过证书链校验
        """
        self.timeout = timeout
        self.skip_verify = skip_verify
        self.logger = logging.getLogger(__name__)

    def fetch(self, host: str, port: str) -> LeafCertificate:
        """
        建立TLS连接并读取对端的叶子证书

        Args:
            host: 主机
            port: 端口

        Returns:
            LeafCertificate: 叶子证书摘要

        Raises:
            OSError: 连接、握手或校验失败
            CertificateFetchError: 对端未提供证书
        """
        context = self._create_context()
        address = (host, int(port) if port.isdigit() else port)

        self.logger.debug(f"连接 {join_host_port(host, port)}，跳过校验: {self.skip_verify}")

        with socket.create_connection(address, timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=host) as ssock:
                der_cert = ssock.getpeercert(binary_form=True)
                ip = ssock.getpeername()[0]

        if not der_cert:
            raise CertificateFetchError(f"no certificate presented by {join_host_port(host, port)}")

        cert = x509.load_der_x509_certificate(der_cert)
        return LeafCertificate.from_x509(cert, ip)

    def _create_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if self.skip_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context


class CertificateService:
    """将单个 host[:port] 转换为证书记录，失败信息写入记录而不抛出"""

    def __init__(self, fetcher: Optional[CertificateFetcherInterface] = None,
                 error_handler: Optional[NetworkErrorHandler] = None):
        """
        初始化证书服务

        Args:
            fetcher: 证书获取能力，默认使用 TLSCertificateFetcher
            error_handler: 错误处理器，默认不重试
        """
        self.fetcher = fetcher or TLSCertificateFetcher()
        self.error_handler = error_handler or NetworkErrorHandler()
        self.logger = logging.getLogger(__name__)

    def get_record(self, hostport: str) -> CertificateRecord:
        """
        获取单个主机的证书记录

        Args:
            hostport: host 或 host:port

        Returns:
            CertificateRecord: 成功时包含全部描述字段，失败时只有域名和错误信息
        """
        try:
            host, port = parse_host_port(hostport)
        except HostParseError as e:
            self.error_handler.describe_error(hostport, e)
            return CertificateRecord.failure(hostport, str(e))

        try:
            leaf = self.error_handler.with_retry(self.fetcher.fetch, host, port)
            record = self.build_record(host, leaf)
        except Exception as e:
            error_info = self.error_handler.describe_error(host, e)
            return CertificateRecord.failure(host, error_info['error_message'])

        self.logger.debug(f"主机 {host} 证书获取成功，IP: {record.ip}")
        return record

    @staticmethod
    def build_record(host: str, leaf: LeafCertificate) -> CertificateRecord:
        """
        由叶子证书摘要构造成功记录

        Args:
            host: 请求的主机（不含端口）
            leaf: 叶子证书摘要

        Returns:
            CertificateRecord: 证书记录
        """
        return CertificateRecord(
            domain_name=host,
            ip=leaf.ip,
            issuer=leaf.issuer,
            common_name=leaf.common_name,
            sans=tuple(leaf.sans),
            not_before=format_timestamp(leaf.not_before),
            not_after=format_timestamp(leaf.not_after),
            error=""
        )
