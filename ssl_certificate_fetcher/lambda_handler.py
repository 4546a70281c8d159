"""
AWS Lambda函数入口点
"""
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone

from .errors import ConfigError, EmptyHostListError
from .interfaces import CertificateFetcherInterface, ReportPublisherInterface
from .models import ReportResult
from .services.batch_collector import BatchCollector
from .services.cert_fetcher import CertificateService, TLSCertificateFetcher
from .services.config_validator import ConfigValidator
from .services.error_handler import NetworkErrorHandler
from .services.fetcher_config import FetcherConfig, HostListConfig, split_host_list
from .services.logger import LoggerService
from .services.renderers import RENDERERS
from .services.sns_notification import SNSReportPublisher


class CertificateReportJob:
    """证书报告任务：获取、渲染并可选发布"""

    def __init__(self, config: Optional[FetcherConfig] = None,
                 fetcher: Optional[CertificateFetcherInterface] = None,
                 publisher: Optional[ReportPublisherInterface] = None):
        """
        初始化报告任务

        Args:
            config: 运行参数，默认从环境变量读取
            fetcher: 证书获取能力，默认按配置创建 TLSCertificateFetcher
            publisher: 报告发布器，默认在配置了SNS主题时创建
        """
        self.config = config or FetcherConfig.from_env()
        self.logger_service = LoggerService(log_level=self.config.log_level)
        self.host_config = HostListConfig()

        self.fetcher = fetcher or TLSCertificateFetcher(
            timeout=self.config.timeout,
            skip_verify=self.config.skip_verify
        )
        self.error_handler = NetworkErrorHandler(max_retries=self.config.max_retries)
        self.collector = BatchCollector(
            service=CertificateService(self.fetcher, self.error_handler),
            concurrency=self.config.concurrency,
            logger_service=self.logger_service
        )

        self.publisher = publisher
        if self.publisher is None and self.config.sns_topic_arn:
            self.publisher = SNSReportPublisher(topic_arn=self.config.sns_topic_arn)

        self.logger_service.log_configuration_info(self.config.as_log_dict())

    def execute(self, hosts: Optional[List[str]] = None,
                output_format: Optional[str] = None) -> ReportResult:
        """
        执行证书获取并渲染报告

        Args:
            hosts: 主机列表，为None时从环境变量读取
            output_format: 输出格式，为None时使用配置

        Returns:
            ReportResult: 执行结果

        Raises:
            EmptyHostListError: 主机列表为空
            ValueError: 输出格式未知
        """
        start_time = datetime.now(timezone.utc)

        if hosts is None:
            hosts = self.host_config.get_hosts()
        output_format = (output_format or self.config.output_format).lower()
        if output_format not in RENDERERS:
            raise ValueError(f"unknown output format {output_format!r}")

        self.logger_service.reset_stats()
        result_set = self.collector.fetch_all(hosts)
        output = result_set.render(output_format)

        published = False
        if self.publisher is not None:
            published = self.publisher.publish_report(result_set, output)

        self.logger_service.log_execution_summary()

        summary = result_set.summary()
        execution_time = (datetime.now(timezone.utc) - start_time).total_seconds()

        return ReportResult(
            total_hosts=summary['total_hosts'],
            successful_checks=summary['successful_checks'],
            failed_checks=summary['failed_checks'],
            output_format=output_format,
            output=output,
            execution_time=execution_time,
            published=published,
            errors=[f"{record.domain_name}: {record.error}" for record in result_set.failed],
            result_set=result_set
        )

    def validate_system_health(self) -> Dict[str, Any]:
        """
        验证配置健康状态

        Returns:
            dict: 健康状态信息
        """
        validation = ConfigValidator().validate_all_configurations()
        return {
            'overall_healthy': validation['is_valid'],
            'issues': validation['errors'],
            'warnings': validation['warnings'],
        }


def _hosts_from_event(event: Dict[str, Any]) -> Optional[List[str]]:
    hosts = event.get('hosts')
    if hosts is None:
        return None
    if isinstance(hosts, str):
        return split_host_list(hosts)
    return [str(host).strip() for host in hosts if str(host).strip()]


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda函数入口点

    Args:
        event: 触发事件，可包含 hosts（列表或逗号分隔字符串）和 format
        context: Lambda运行时上下文

    Returns:
        dict: 执行结果和统计信息
    """
    event = event or {}

    try:
        job = CertificateReportJob()
        result = job.execute(hosts=_hosts_from_event(event), output_format=event.get('format'))

    except (EmptyHostListError, ConfigError, ValueError) as e:
        return {
            'statusCode': 400,
            'body': {
                'message': 'Invalid certificate report request',
                'error': str(e),
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
        }

    except Exception as e:
        LoggerService().logger.exception(f"Lambda函数执行时发生严重错误: {str(e)}")
        return {
            'statusCode': 500,
            'body': {
                'message': 'Certificate report encountered a critical error',
                'error': str(e),
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
        }

    return {
        'statusCode': 200,
        'body': {
            'message': 'Certificate report generated successfully',
            'summary': {
                'total_hosts': result.total_hosts,
                'successful_checks': result.successful_checks,
                'failed_checks': result.failed_checks,
                'execution_time_seconds': result.execution_time,
                'published': result.published,
                'error_statistics': job.error_handler.get_error_statistics(result.result_set),
            },
            'format': result.output_format,
            'output': result.output,
            'errors': result.errors[:5],  # 只返回前5个错误
            'timestamp': datetime.now(timezone.utc).isoformat()
        }
    }
