# ==============================================================================
# 模块: download/schemas.py
# 功能: 下载记录的 Pydantic 响应模型
# ==============================================================================
"""Download log schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from apps.report.schemas import ReportSchema


class DownloadLogSchema(BaseModel):
    id: str
    report_id: str
    user_id: Optional[str] = None  # 匿名下载时为空
    downloaded_at: datetime
    model_config = {"from_attributes": True}


# 用户下载列表中的条目附带关联的研报
class UserDownloadLogSchema(DownloadLogSchema):
    report: Optional[ReportSchema] = None


class DownloadLogPage(BaseModel):
    total: int = 0
    logs: list[UserDownloadLogSchema] = Field(default_factory=list)
