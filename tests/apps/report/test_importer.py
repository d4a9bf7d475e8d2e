"""Tests for apps/report/importer.py — spreadsheet parsing and template.

Excel 导入解析与模板生成测试。
"""

from __future__ import annotations

import io
from datetime import date, datetime

import pytest
from openpyxl import Workbook, load_workbook

from apps.report.importer import (
    TEMPLATE_SAMPLE_ROW,
    TEMPLATE_SHEET_NAME,
    build_template,
    clean_cell_value,
    parse_records,
    parse_workbook,
)
from core.exceptions import ValidationError


def _workbook(*rows) -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


HEADER = ("Title", "Description", "Download URL", "Source", "Published Date")


class TestCleanCellValue:
    """Verify cell normalization."""

    def test_strips_and_blanks_become_none(self):
        assert clean_cell_value("  Title ") == "Title"
        assert clean_cell_value("   ") is None
        assert clean_cell_value(42) == 42
        assert clean_cell_value(None) is None


class TestParseWorkbook:
    """Verify parsing of uploaded workbooks.

    缺少标题或下载地址的行被跳过，其余行必须全部合法。
    """

    def test_parses_display_headers(self):
        source = _workbook(
            HEADER,
            ("Bank Outlook", "Desc", "https://example.com/a.pdf", "Broker", datetime(2025, 3, 1)),
            ("Energy", None, "https://example.com/b.pdf", None, None),
        )
        parsed = parse_workbook(source)
        assert parsed.skipped == 0
        assert [r.title for r in parsed.rows] == ["Bank Outlook", "Energy"]
        assert parsed.rows[0].published_at == date(2025, 3, 1)
        assert parsed.rows[1].description is None

    def test_accepts_field_name_headers(self):
        source = _workbook(
            ("title", "pdf_url", "published_at"),
            ("By field name", "https://example.com/c.pdf", "2025-01-02"),
        )
        parsed = parse_workbook(source)
        assert parsed.rows[0].published_at == date(2025, 1, 2)

    def test_rows_missing_title_or_url_are_skipped(self):
        source = _workbook(
            HEADER,
            ("Kept", None, "https://example.com/k.pdf", None, None),
            (None, "no title", "https://example.com/x.pdf", None, None),
            ("No url", None, "   ", None, None),
        )
        parsed = parse_workbook(source)
        assert [r.title for r in parsed.rows] == ["Kept"]
        assert parsed.skipped == 2

    def test_invalid_row_rejects_whole_sheet_with_row_number(self):
        source = _workbook(
            HEADER,
            ("Fine", None, "https://example.com/ok.pdf", None, None),
            ("Broken url", None, "ftp://example.com/x.pdf", None, None),
        )
        with pytest.raises(ValidationError) as exc_info:
            parse_workbook(source)
        errors = exc_info.value.errors
        assert errors[0]["row"] == 3
        assert errors[0]["field"] == "pdf_url"

    def test_sheet_without_importable_rows(self):
        with pytest.raises(ValidationError):
            parse_workbook(_workbook(HEADER, (None, None, None, None, None)))

    def test_row_limit(self):
        records = [{"Title": f"R{i}", "Download URL": "https://e.com/r.pdf"} for i in range(4)]
        with pytest.raises(ValidationError):
            parse_records(records, max_rows=3)
        assert len(parse_records(records, max_rows=4).rows) == 4

    def test_not_a_workbook(self):
        with pytest.raises(ValidationError):
            parse_workbook(io.BytesIO(b"this is not a spreadsheet"))


class TestBuildTemplate:
    """Verify the downloadable import template."""

    def test_template_has_headers_and_sample(self):
        wb = load_workbook(io.BytesIO(build_template()))
        ws = wb.active
        assert ws.title == TEMPLATE_SHEET_NAME
        rows = list(ws.iter_rows(values_only=True))
        assert rows[0] == HEADER
        assert rows[1] == TEMPLATE_SAMPLE_ROW

    def test_template_parses_back(self):
        parsed = parse_workbook(io.BytesIO(build_template()))
        assert parsed.rows[0].title == TEMPLATE_SAMPLE_ROW[0]
        assert parsed.rows[0].published_at == date(2025, 1, 1)
