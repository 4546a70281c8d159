"""
服务接口定义
"""
from abc import ABC, abstractmethod
from typing import List
from .models import CertificateRecord, LeafCertificate, ResultSet


class CertificateFetcherInterface(ABC):
    """证书获取能力接口：给定主机和端口，返回叶子证书摘要或抛出异常"""

    @abstractmethod
    def fetch(self, host: str, port: str) -> LeafCertificate:
        """获取单个主机的叶子证书"""
        pass


class HostConfigManagerInterface(ABC):
    """主机配置管理器接口"""

    @abstractmethod
    def get_hosts(self) -> List[str]:
        """获取主机列表"""
        pass

    @abstractmethod
    def validate_host(self, hostport: str) -> bool:
        """验证主机格式"""
        pass


class ReportPublisherInterface(ABC):
    """报告发布接口"""

    @abstractmethod
    def publish_report(self, result_set: ResultSet, output: str) -> bool:
        """发布渲染后的报告"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""

    @abstractmethod
    def log_batch_start(self, host_count: int):
        """记录批处理开始"""
        pass

    @abstractmethod
    def log_record(self, record: CertificateRecord):
        """记录单个主机的结果"""
        pass

    @abstractmethod
    def log_error(self, host: str, error: Exception):
        """记录错误信息"""
        pass
