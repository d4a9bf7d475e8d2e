# ==============================================================================
# 模块: homepage/models.py
# 功能: 首页文案配置的数据库模型
# 设计说明:
#   - 表中可能存在多行, 读取时只取 updated_at 最新的一行
#   - features / advantages 为有序字符串列表, 以 JSON 存储
# ==============================================================================
"""Homepage config models."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from common.utils import utc_now
from core.models.base import Base, IdMixin


class HomepageConfig(Base, IdMixin):
    """Editable homepage copy."""

    __tablename__ = "homepage_config"

    mission: Mapped[str | None] = mapped_column(Text, nullable=True)
    features: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    advantages: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
        index=True,
    )
