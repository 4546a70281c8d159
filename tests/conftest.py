"""
测试公共夹具
"""
import ipaddress
import threading
import time
from datetime import datetime, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from ssl_certificate_fetcher.interfaces import CertificateFetcherInterface
from ssl_certificate_fetcher.models import LeafCertificate


NOT_BEFORE = datetime(2017, 1, 1, tzinfo=timezone.utc)
NOT_AFTER = datetime(2018, 1, 1, tzinfo=timezone.utc)


class StubFetcher(CertificateFetcherInterface):
    """返回固定证书的获取器，记录调用和并发峰值"""

    def __init__(self, delays=None, failures=None, wildcard=False):
        self.delays = delays or {}
        self.failures = failures or {}
        self.wildcard = wildcard
        self.not_before = NOT_BEFORE
        self.not_after = NOT_AFTER
        self.calls = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def fetch(self, host, port):
        with self._lock:
            self.calls.append((host, port))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            delay = self.delays.get(host, 0)
            if delay:
                time.sleep(delay)
            if host in self.failures:
                raise self.failures[host]
            second = ("*." if self.wildcard else "www.") + host
            return LeafCertificate(
                ip="127.0.0.1",
                issuer="CA for test",
                common_name=host,
                sans=(host, second),
                not_before=self.not_before,
                not_after=self.not_after,
            )
        finally:
            with self._lock:
                self.active -= 1


def build_certificate(common_name="example.com", issuer_cn="CA for test",
                      dns_names=("example.com", "www.example.com"), ip_names=(),
                      not_before=NOT_BEFORE, not_after=NOT_AFTER):
    """生成自签名测试证书"""
    key = ec.generate_private_key(ec.SECP256R1())

    subject_attrs = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test Org")]
    if common_name:
        subject_attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    issuer_attrs = [x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn)]

    builder = (
        x509.CertificateBuilder()
        .subject_name(x509.Name(subject_attrs))
        .issuer_name(x509.Name(issuer_attrs))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
    )

    general_names = [x509.IPAddress(ipaddress.ip_address(ip)) for ip in ip_names]
    general_names += [x509.DNSName(name) for name in dns_names or ()]
    if general_names:
        builder = builder.add_extension(x509.SubjectAlternativeName(general_names), critical=False)

    return builder.sign(key, hashes.SHA256())


@pytest.fixture
def stub_fetcher():
    return StubFetcher()


@pytest.fixture
def stub_fetcher_factory():
    return StubFetcher


@pytest.fixture
def certificate_factory():
    return build_certificate
