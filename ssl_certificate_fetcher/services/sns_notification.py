"""
SNS报告发布服务
"""
import os
import time
from typing import Optional
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..interfaces import ReportPublisherInterface
from ..models import ResultSet


# SNS消息体上限 256KB
MAX_MESSAGE_BYTES = 256 * 1024
TRUNCATION_NOTICE = "\n... (report truncated)\n"


class SNSReportPublisher(ReportPublisherInterface):
    """将渲染后的证书报告发布到SNS主题"""

    def __init__(self, topic_arn: Optional[str] = None, region_name: Optional[str] = None,
                 sns_client=None, retry_delay: float = 1.0):
        """
        初始化SNS报告发布器

        Args:
            topic_arn: SNS主题ARN，如果为None则从环境变量读取
            region_name: AWS区域名称，如果为None则从ARN或环境变量推断
            sns_client: 预先创建的SNS客户端
            retry_delay: 重试的基础延迟（秒）
        """
        self.topic_arn = topic_arn or os.getenv('SNS_TOPIC_ARN')
        self.retry_delay = retry_delay
        self.logger = logging.getLogger(__name__)

        if region_name:
            self.region_name = region_name
        elif self.topic_arn and self.topic_arn.startswith('arn:aws:sns:'):
            # 从SNS ARN中提取区域
            self.region_name = self.topic_arn.split(':')[3]
        else:
            self.region_name = os.getenv('AWS_REGION', 'us-east-1')

        self.sns_client = sns_client
        if self.sns_client is None:
            try:
                self.sns_client = boto3.client('sns', region_name=self.region_name)
                self.logger.info(f"SNS客户端初始化成功，区域: {self.region_name}")
            except (BotoCoreError, ClientError) as e:
                self.logger.error(f"初始化SNS客户端失败: {str(e)}")

    def publish_report(self, result_set: ResultSet, output: str) -> bool:
        """
        发布证书报告

        Args:
            result_set: 结果集，用于生成主题
            output: 渲染后的报告正文

        Returns:
            bool: 发送是否成功
        """
        if not self._validate_configuration():
            return False

        subject = self.format_subject(result_set)
        message = self.truncate_message(output)

        return self._publish_with_retry(subject, message)

    def format_subject(self, result_set: ResultSet) -> str:
        """
        生成ASCII主题（SNS要求少于100个字符）

        Args:
            result_set: 结果集

        Returns:
            str: 主题
        """
        summary = result_set.summary()
        subject = (
            f"TLS certificate report: {summary['total_hosts']} hosts, "
            f"{summary['failed_checks']} failed"
        )
        return subject[:99]

    def truncate_message(self, message: str) -> str:
        """超过SNS大小上限时截断报告"""
        encoded = message.encode('utf-8')
        if len(encoded) <= MAX_MESSAGE_BYTES:
            return message

        self.logger.warning(f"报告大小 {len(encoded)} 字节超过SNS上限，已截断")
        limit = MAX_MESSAGE_BYTES - len(TRUNCATION_NOTICE.encode('utf-8'))
        return encoded[:limit].decode('utf-8', errors='ignore') + TRUNCATION_NOTICE

    def _validate_configuration(self) -> bool:
        if not self.topic_arn:
            self.logger.error("SNS_TOPIC_ARN未设置，无法发布报告")
            return False
        if not self.sns_client:
            self.logger.error("SNS客户端不可用")
            return False
        return True

    def _publish_with_retry(self, subject: str, message: str, max_retries: int = 3) -> bool:
        """
        带重试机制的SNS消息发布

        Args:
            subject: 消息主题
            message: 消息内容
            max_retries: 最大重试次数

        Returns:
            bool: 发送是否成功
        """
        for attempt in range(max_retries + 1):
            try:
                response = self.sns_client.publish(
                    TopicArn=self.topic_arn,
                    Subject=subject,
                    Message=message
                )

                self.logger.info(f"SNS报告发送成功，MessageId: {response.get('MessageId')}")
                return True

            except ClientError as e:
                error_code = e.response['Error']['Code']
                error_message = e.response['Error']['Message']

                if self._is_retryable_error(error_code) and attempt < max_retries:
                    wait_time = self.retry_delay * (2 ** attempt)
                    self.logger.warning(
                        f"SNS发送失败 (尝试 {attempt + 1}/{max_retries + 1}) - {error_code}: {error_message}，"
                        f"{wait_time}秒后重试"
                    )
                    time.sleep(wait_time)
                    continue

                self.logger.error(f"SNS发送失败 - {error_code}: {error_message}")
                return False

            except BotoCoreError as e:
                if attempt < max_retries:
                    wait_time = self.retry_delay * (2 ** attempt)
                    self.logger.warning(
                        f"发送SNS报告时发生错误 (尝试 {attempt + 1}/{max_retries + 1}): {str(e)}，"
                        f"{wait_time}秒后重试"
                    )
                    time.sleep(wait_time)
                    continue

                self.logger.error(f"发送SNS报告失败: {str(e)}")
                return False

        return False

    def _is_retryable_error(self, error_code: str) -> bool:
        retryable_errors = {
            'Throttling',
            'ThrottlingException',
            'ServiceUnavailable',
            'InternalError',
            'RequestTimeout'
        }
        return error_code in retryable_errors
