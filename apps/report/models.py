# ==============================================================================
# 模块: report/models.py
# 功能: 研报模块的数据库模型定义 (ORM 映射层)
# 架构角色: 定义了研报目录的核心数据表 Report,
#           存储研报元数据、PDF 外链以及浏览/下载计数器。
# 设计说明:
#   - 使用 SQLAlchemy 2.0 声明式映射 (Mapped + mapped_column)
#   - 继承 Base / IdMixin / TimestampMixin 获得统一的主键与时间戳字段
#   - PDF 文件本身存放在外部对象存储, 这里只保存 URL
#   - category 关系使用 selectin 预加载, 读取研报时一并带出分类快照
# ==============================================================================
"""Report models."""
from __future__ import annotations

from datetime import date

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from apps.category.models import Category
from core.models.base import Base, IdMixin, TimestampMixin

# 允许原子递增的计数器字段
COUNTER_FIELDS = ("view_count", "download_count")


# --------------------------------------------------------------------------
# Report 模型 - 研报表
# 关键字段:
#   - category_id: 所属分类, 可为空; 分类删除时置空 (ON DELETE SET NULL)
#   - pdf_url: PDF 下载地址 (http/https)
#   - published_at: 研报发布日期 (仅日期)
#   - view_count / download_count: 非负计数器, 只增不减
#   - created_by: 创建者的 Profile.id, 弱引用, 不建外键
# --------------------------------------------------------------------------
class Report(Base, IdMixin, TimestampMixin):
    """Research report listed in the catalog."""

    __tablename__ = "reports"
    __table_args__ = (
        CheckConstraint("view_count >= 0", name="ck_reports_view_count"),
        CheckConstraint("download_count >= 0", name="ck_reports_download_count"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    pdf_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    published_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    download_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by: Mapped[str | None] = mapped_column(
        String(36), nullable=True, comment="Profile.id of the creator"
    )

    # 读取时的分类快照; 分类被删除后为 None
    category: Mapped[Category | None] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, title={self.title})>"
