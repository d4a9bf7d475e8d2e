# ==============================================================================
# 模块: category/models.py
# 功能: 研报分类的数据库模型定义 (ORM 映射层)
# 架构角色: 定义 categories 表。研报通过 category_id 弱引用分类，
#           删除分类时由 CategoryService 将引用置空 (orphan-null)。
# ==============================================================================
"""Category models."""
from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import Base, IdMixin, TimestampMixin


class Category(Base, IdMixin, TimestampMixin):
    """Grouping label for reports."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"
