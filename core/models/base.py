# =============================================================================
# ORM 基础模型与通用混入类模块
# =============================================================================
# 本模块定义了 ReportHub 中所有 SQLAlchemy ORM 模型的基类和通用混入（Mixin）。
# 主要职责：
#   1. 提供所有 ORM 模型的声明式基类（Base），统一模型注册与元数据管理
#   2. 提供字符串主键混入类（IdMixin），由服务端生成不透明的 UUID 标识符
#   3. 提供时间戳混入类（TimestampMixin），自动管理创建时间和更新时间字段
#
# 设计决策：
#   - 使用 SQLAlchemy 2.0 风格的 DeclarativeBase 声明式基类
#   - 时间戳统一使用 UTC 时区（timezone.utc），避免时区转换问题
#   - 使用 Python 侧默认值 utc_now 而非 server_default，确保在 Python 层面生成时间戳
# =============================================================================

"""Base models and mixins for ReportHub."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from common.utils import new_id, utc_now


class Base(DeclarativeBase):
    """Declarative base for all ORM models.

    All SQLAlchemy models in ReportHub must inherit from this base so they
    are registered in ``Base.metadata`` for schema creation and migrations.
    """

    pass


class IdMixin:
    """Mixin providing an opaque, server-generated string primary key."""

    # UUID4 字符串，插入时在 Python 层生成
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )


class TimestampMixin:
    """Mixin providing ``created_at`` and ``updated_at`` timestamps.

    The timestamps are generated in UTC at the Python layer. ``updated_at`` is
    refreshed automatically on update operations.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    # onupdate 使得每次 UPDATE 操作时 SQLAlchemy 会自动刷新此字段
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

