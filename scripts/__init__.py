#!/usr/bin/env python3
"""scripts 包初始化文件。

ReportHub 的运维脚本：
    - import_reports: 从 .xlsx 工作簿离线批量导入研报

用法示例：
    python scripts/import_reports.py reports.xlsx --as-user admin
    python scripts/import_reports.py reports.xlsx --dry-run
"""

__all__ = []
