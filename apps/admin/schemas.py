# ==============================================================================
# 模块: admin/schemas.py
# 功能: 管理后台统计数据的 Pydantic 模型
# ==============================================================================
"""Admin schemas."""
from __future__ import annotations

from pydantic import BaseModel


class Statistics(BaseModel):
    total_reports: int = 0
    total_downloads: int = 0  # download_logs 行数
    total_users: int = 0
    total_views: int = 0  # 所有研报 view_count 之和
