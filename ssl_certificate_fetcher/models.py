"""
数据模型定义
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from cryptography import x509
from cryptography.x509.oid import NameOID


# 有效期的固定本地时间格式，例如 "2017-01-01 00:00:00 +0000 UTC"
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S %z %Z'

# JSON 字段名及顺序
RECORD_FIELDS = (
    ('domainName', 'domain_name'),
    ('ip', 'ip'),
    ('issuer', 'issuer'),
    ('commonName', 'common_name'),
    ('sans', 'sans'),
    ('notBefore', 'not_before'),
    ('notAfter', 'not_after'),
    ('error', 'error'),
)


def format_timestamp(value: datetime) -> str:
    """将证书时间转换为本地时区并格式化"""
    return value.astimezone().strftime(TIMESTAMP_FORMAT)


def _first_common_name(name: x509.Name) -> str:
    attributes = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return ""
    value = attributes[0].value
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value


@dataclass(frozen=True)
class LeafCertificate:
    """TLS握手得到的叶子证书摘要"""
    ip: str
    issuer: str
    common_name: str
    sans: Tuple[str, ...]
    not_before: datetime
    not_after: datetime

    @classmethod
    def from_x509(cls, cert: x509.Certificate, ip: str) -> 'LeafCertificate':
        """
        从 cryptography 证书对象提取描述字段

        Args:
            cert: 叶子证书
            ip: 对端IP地址

        Returns:
            LeafCertificate: 证书摘要
        """
        try:
            san_extension = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
            sans = tuple(san_extension.value.get_values_for_type(x509.DNSName))
        except x509.ExtensionNotFound:
            sans = ()

        return cls(
            ip=ip,
            issuer=_first_common_name(cert.issuer),
            common_name=_first_common_name(cert.subject),
            sans=sans,
            not_before=cert.not_valid_before_utc,
            not_after=cert.not_valid_after_utc,
        )


@dataclass(frozen=True)
class CertificateRecord:
    """单个主机的证书记录"""
    domain_name: str
    ip: str = ""
    issuer: str = ""
    common_name: str = ""
    sans: Tuple[str, ...] = ()
    not_before: str = ""
    not_after: str = ""
    error: str = ""

    @property
    def is_valid(self) -> bool:
        """是否成功获取证书"""
        return self.error == ""

    @classmethod
    def failure(cls, domain_name: str, error: str) -> 'CertificateRecord':
        """创建只包含域名和错误信息的记录"""
        return cls(domain_name=domain_name, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """按JSON字段名和顺序导出"""
        data = {}
        for wire_name, attr in RECORD_FIELDS:
            value = getattr(self, attr)
            data[wire_name] = list(value) if attr == 'sans' else value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CertificateRecord':
        """从JSON对象还原记录"""
        kwargs = {attr: data.get(wire_name, "") for wire_name, attr in RECORD_FIELDS}
        kwargs['sans'] = tuple(data.get('sans') or ())
        return cls(**kwargs)


class ResultSet:
    """有序的证书记录集合，构造后不可变"""

    def __init__(self, records: Iterable[CertificateRecord] = ()):
        self._records = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CertificateRecord]:
        return iter(self._records)

    def __getitem__(self, index):
        return self._records[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResultSet):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"ResultSet({list(self._records)!r})"

    @property
    def records(self) -> Tuple[CertificateRecord, ...]:
        return self._records

    @property
    def successful(self) -> List[CertificateRecord]:
        return [record for record in self._records if record.is_valid]

    @property
    def failed(self) -> List[CertificateRecord]:
        return [record for record in self._records if not record.is_valid]

    def summary(self) -> Dict[str, int]:
        """统计成功与失败数量"""
        return {
            'total_hosts': len(self._records),
            'successful_checks': len(self.successful),
            'failed_checks': len(self.failed),
        }

    def text(self) -> str:
        from .services.renderers import render_text
        return render_text(self._records)

    def markdown(self) -> str:
        from .services.renderers import render_markdown
        return render_markdown(self._records)

    def json(self) -> bytes:
        from .services.renderers import render_json
        return render_json(self._records)

    def render(self, output_format: str) -> str:
        """
        按格式名渲染

        Args:
            output_format: text、markdown 或 json

        Returns:
            str: 渲染结果
        """
        from .services.renderers import render
        return render(self._records, output_format)

    @classmethod
    def from_json(cls, data) -> 'ResultSet':
        """从JSON编码还原结果集"""
        import json
        return cls(CertificateRecord.from_dict(item) for item in json.loads(data))


@dataclass
class ReportResult:
    """报告任务执行结果"""
    total_hosts: int
    successful_checks: int
    failed_checks: int
    output_format: str
    output: str
    execution_time: float
    published: bool = False
    errors: List[str] = field(default_factory=list)
    result_set: Optional[ResultSet] = None
