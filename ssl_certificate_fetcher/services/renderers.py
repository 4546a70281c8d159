"""
结果集渲染：纯文本、Markdown表格、JSON

渲染函数只读取记录，不修改记录。
"""
import json
from typing import Callable, Dict, Sequence

from ..errors import RenderError


TEXT_TEMPLATE = (
    "DomainName: {domain_name}\n"
    "IP:         {ip}\n"
    "Issuer:     {issuer}\n"
    "NotBefore:  {not_before}\n"
    "NotAfter:   {not_after}\n"
    "CommonName: {common_name}\n"
    "SANs:       [{sans}]\n"
    "Error:      {error}\n"
    "\n"
)

MARKDOWN_HEADER = (
    "DomainName | IP | Issuer | NotBefore | NotAfter | CN | SANs | Error\n"
    "--- | --- | --- | --- | --- | --- | --- | ---\n"
)

MARKDOWN_ROW = "{domain_name} | {ip} | {issuer} | {not_before} | {not_after} | {common_name} | {sans} | {error}\n"

MARKDOWN_LINE_BREAK = "<br/>"


def escape_star(value: str) -> str:
    """转义 *，避免通配符SAN被当作Markdown强调语法"""
    return value.replace("*", "\\*")


def render_text(records: Sequence) -> str:
    """
    渲染为按字段分行的纯文本，每条记录后跟一个空行

    Args:
        records: 证书记录序列

    Returns:
        str: 文本输出
    """
    blocks = []
    for record in records:
        blocks.append(TEXT_TEMPLATE.format(
            domain_name=record.domain_name,
            ip=record.ip,
            issuer=record.issuer,
            not_before=record.not_before,
            not_after=record.not_after,
            common_name=record.common_name,
            sans=" ".join(record.sans),
            error=record.error,
        ))
    return "".join(blocks) + "\n"


def render_markdown(records: Sequence) -> str:
    """
    渲染为Markdown表格

    Args:
        records: 证书记录序列

    Returns:
        str: Markdown输出
    """
    rows = [MARKDOWN_HEADER]
    for record in records:
        rows.append(MARKDOWN_ROW.format(
            domain_name=record.domain_name,
            ip=record.ip,
            issuer=record.issuer,
            not_before=record.not_before,
            not_after=record.not_after,
            common_name=record.common_name,
            sans="".join(escape_star(san) + MARKDOWN_LINE_BREAK for san in record.sans),
            error=record.error,
        ))
    rows.append("\n")
    return "".join(rows)


def render_json(records: Sequence) -> bytes:
    """
    渲染为紧凑的JSON数组（UTF-8编码）

    Args:
        records: 证书记录序列

    Returns:
        bytes: JSON输出

    Raises:
        RenderError: 记录无法序列化
    """
    try:
        data = json.dumps(
            [record.to_dict() for record in records],
            separators=(',', ':'),
            ensure_ascii=False
        )
    except (TypeError, ValueError) as e:
        raise RenderError(f"failed to encode result set as JSON: {e}") from e
    return data.encode('utf-8')


RENDERERS: Dict[str, Callable[[Sequence], str]] = {
    'text': render_text,
    'markdown': render_markdown,
    'json': lambda records: render_json(records).decode('utf-8'),
}


def render(records: Sequence, output_format: str) -> str:
    """
    按格式名渲染

    Args:
        records: 证书记录序列
        output_format: text、markdown 或 json

    Returns:
        str: 渲染结果

    Raises:
        ValueError: 未知格式
    """
    renderer = RENDERERS.get(output_format.lower())
    if renderer is None:
        raise ValueError(
            f"unknown output format {output_format!r}, expected one of: {', '.join(RENDERERS)}"
        )
    return renderer(records)
