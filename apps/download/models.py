# ==============================================================================
# 模块: download/models.py
# 功能: 下载记录的数据库模型定义
# 架构角色: download_logs 是只追加的审计表, 每次下载写入一行。
# 设计说明:
#   - user_id 为空表示匿名下载; 弱引用 Profile.id, 不建外键
#   - 同一用户可以多次下载同一研报, 不做唯一性约束
#   - report 关系用于 "我的下载" 列表中附带研报信息
# ==============================================================================
"""Download log models."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from apps.report.models import Report
from common.utils import utc_now
from core.models.base import Base, IdMixin


class DownloadLog(Base, IdMixin):
    """One download event."""

    __tablename__ = "download_logs"

    report_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True
    )
    downloaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True,
    )

    report: Mapped[Report] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<DownloadLog(id={self.id}, report_id={self.report_id}, user_id={self.user_id})>"
