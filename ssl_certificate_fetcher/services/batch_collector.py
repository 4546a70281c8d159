"""
并发批量获取服务
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence
import logging

from ..errors import EmptyHostListError
from ..models import CertificateRecord, ResultSet
from .cert_fetcher import CertificateService
from .error_handler import error_message
from .logger import LoggerService


DEFAULT_CONCURRENCY = 128


class BatchCollector:
    """
    并发获取多个主机的证书

    同时进行中的获取数不超过 concurrency，超出的任务在线程池队列中等待空闲位置。
    每个任务带有输入下标，结果按下标写回预分配的列表，因此输出顺序与输入一致，
    与完成顺序无关。单个主机的失败只体现在该主机的记录中，不会中断整个批次。
    """

    def __init__(self, service: Optional[CertificateService] = None,
                 concurrency: int = DEFAULT_CONCURRENCY,
                 logger_service: Optional[LoggerService] = None):
        """
        初始化批量获取器

        Args:
            service: 证书服务
            concurrency: 最大并发数
            logger_service: 日志服务，为None时只写模块日志
        """
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise ValueError(f"concurrency must be a positive integer, got {concurrency!r}")

        self.service = service or CertificateService()
        self.concurrency = concurrency
        self.logger_service = logger_service
        self.logger = logging.getLogger(__name__)

    def fetch_all(self, hosts: Sequence[str]) -> ResultSet:
        """
        获取所有主机的证书，全部完成后返回

        Args:
            hosts: host 或 host:port 列表

        Returns:
            ResultSet: 与输入等长、同序的结果集

        Raises:
            EmptyHostListError: 主机列表为空
        """
        hosts = list(hosts)
        if not hosts:
            raise EmptyHostListError()

        if self.logger_service:
            self.logger_service.log_batch_start(len(hosts))

        records: List[Optional[CertificateRecord]] = [None] * len(hosts)
        workers = min(self.concurrency, len(hosts))

        self.logger.debug(f"提交 {len(hosts)} 个任务，并发上限 {workers}")

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cert-fetch") as executor:
            futures = {
                executor.submit(self.service.get_record, hostport): index
                for index, hostport in enumerate(hosts)
            }

            for future in as_completed(futures):
                index = futures[future]
                try:
                    record = future.result()
                except Exception as e:
                    self.logger.exception(f"主机 {hosts[index]} 的获取任务异常退出")
                    record = CertificateRecord.failure(hosts[index], error_message(e))

                records[index] = record

                if self.logger_service:
                    self.logger_service.log_record(record)

        if self.logger_service:
            self.logger_service.log_batch_end()

        return ResultSet(records)
