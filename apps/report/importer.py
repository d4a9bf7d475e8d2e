# ==============================================================================
# 模块: report/importer.py
# 功能: 研报 Excel 批量导入与导入模板生成
# 架构角色: 把上传的 .xlsx 工作簿解析为 ReportCreate 列表,
#           随后交给 ReportService.create_reports_batch 一次性写入。
# 解析规则:
#   - 只读取第一个工作表, 第一行为表头
#   - 表头支持两套名称: 展示名 (Title / Download URL ...) 与字段名 (title / pdf_url ...)
#   - 缺少标题或下载地址的行直接跳过 (计入 skipped)
#   - 其余行逐行校验, 任一行不合法则整个导入被拒绝, 错误中带有工作表行号
# ==============================================================================
"""Spreadsheet import for reports."""
from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ValidationError
from .schemas import ReportCreate

logger = logging.getLogger(__name__)

TEMPLATE_SHEET_NAME = "Reports Template"
TEMPLATE_FILENAME = "reports_import_template.xlsx"

# 字段名 -> 可接受的表头名称
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("Title", "title"),
    "description": ("Description", "description"),
    "pdf_url": ("Download URL", "pdf_url"),
    "source": ("Source", "source"),
    "published_at": ("Published Date", "published_at"),
}

TEMPLATE_SAMPLE_ROW = (
    "Sample Report Title",
    "Report description",
    "https://example.com/report.pdf",
    "Research Institution",
    "2025-01-01",
)


@dataclass
class ParsedImport:
    """Outcome of parsing a workbook."""

    rows: list[ReportCreate] = field(default_factory=list)
    skipped: int = 0


def clean_cell_value(value: Any) -> Any:
    """Strip strings and turn empty strings into ``None``."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def read_workbook(source: str | Path | BinaryIO) -> list[dict[str, Any]]:
    """Read the first worksheet into a list of header -> value dicts.

    Args:
        source: Path or binary file object of an ``.xlsx`` workbook.

    Returns:
        list[dict[str, Any]]: One dict per non-header row.

    Raises:
        ValidationError: If the file is not a readable workbook.
    """
    try:
        wb = load_workbook(filename=source, read_only=True, data_only=True)
    except (
        InvalidFileException,
        zipfile.BadZipFile,
        KeyError,
        OSError,
        ValueError,
    ) as e:
        # openpyxl 对损坏的 zip / 非 xlsx 文件会抛出上述几类异常
        raise ValidationError(f"Unreadable spreadsheet: {e}") from e

    try:
        worksheet = wb.worksheets[0]
        rows = worksheet.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return []
        headers = [clean_cell_value(h) for h in header_row]
        records = []
        for row in rows:
            values = [clean_cell_value(v) for v in row]
            records.append(dict(zip(headers, values)))
        return records
    finally:
        wb.close()


def _pick(record: dict[str, Any], field_name: str) -> Any:
    for alias in HEADER_ALIASES[field_name]:
        value = record.get(alias)
        if value is not None:
            return value
    return None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def parse_records(
    records: list[dict[str, Any]], max_rows: int | None = None
) -> ParsedImport:
    """Validate raw sheet records into :class:`ReportCreate` rows.

    Args:
        records: Output of :func:`read_workbook`.
        max_rows: Optional upper bound on the number of data rows.

    Returns:
        ParsedImport: Valid rows and the number of skipped rows.

    Raises:
        ValidationError: If any remaining row is invalid, the sheet is too
            large, or no valid row is left.
    """
    if max_rows is not None and len(records) > max_rows:
        raise ValidationError(
            f"Spreadsheet has {len(records)} rows, the limit is {max_rows}"
        )

    parsed = ParsedImport()
    errors: list[dict] = []
    # 第 1 行是表头, 数据从第 2 行开始
    for row_number, record in enumerate(records, start=2):
        title = _as_text(_pick(record, "title"))
        pdf_url = _as_text(_pick(record, "pdf_url"))
        if not title or not pdf_url:
            parsed.skipped += 1
            continue

        published_at = _pick(record, "published_at")
        if isinstance(published_at, datetime):
            published_at = published_at.date()

        try:
            parsed.rows.append(
                ReportCreate(
                    title=title,
                    description=_as_text(_pick(record, "description")),
                    pdf_url=pdf_url,
                    source=_as_text(_pick(record, "source")),
                    published_at=published_at,
                )
            )
        except PydanticValidationError as e:
            for err in e.errors():
                errors.append(
                    {
                        "row": row_number,
                        "field": ".".join(str(p) for p in err["loc"]),
                        "message": err["msg"],
                    }
                )

    if errors:
        raise ValidationError("Spreadsheet contains invalid rows", errors=errors)
    if not parsed.rows:
        raise ValidationError("Spreadsheet contains no importable rows")

    logger.info(
        f"Parsed spreadsheet: {len(parsed.rows)} row(s), {parsed.skipped} skipped"
    )
    return parsed


def parse_workbook(
    source: str | Path | BinaryIO, max_rows: int | None = None
) -> ParsedImport:
    """Read and validate a workbook in one step."""
    return parse_records(read_workbook(source), max_rows=max_rows)


def build_template() -> bytes:
    """Return an ``.xlsx`` template with the expected headers and one sample row."""
    wb = Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET_NAME
    ws.append([aliases[0] for aliases in HEADER_ALIASES.values()])
    ws.append(list(TEMPLATE_SAMPLE_ROW))

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
