# =============================================================================
# 模块: common/utils.py
# 功能: 通用工具函数集
# 架构角色: 作为基础工具层，提供时间、分页与标识符相关的小工具函数，
#   被各应用的 service 层复用。
#
# 设计决策:
#   - 所有时间操作默认使用 UTC 时区，避免时区混乱
#   - 函数保持简洁无状态，便于测试和复用
# =============================================================================
from __future__ import annotations

import uuid
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time.

    返回带有 UTC 时区信息的 datetime 对象。
    建议使用该函数代替 ``datetime.utcnow()``。

    Returns:
        datetime: Current UTC datetime with timezone info.
    """
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Return a fresh opaque identifier (UUID4 string)."""
    return str(uuid.uuid4())


def is_valid_id(value: str | None) -> bool:
    """Check whether ``value`` looks like an identifier issued by :func:`new_id`.

    Args:
        value: Candidate identifier.

    Returns:
        bool: ``True`` if the value parses as a UUID.
    """
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def page_offset(page: int, page_size: int) -> int:
    """Return the zero-based row offset of ``page``.

    第 page 页（从 1 开始）对应的起始偏移量：``(page - 1) * page_size``。
    """
    return (page - 1) * page_size


def escape_like(term: str, escape: str = "\\") -> str:
    """Escape SQL ``LIKE`` wildcards so ``term`` is matched literally.

    Args:
        term: Raw search term.
        escape: Escape character used in the ``LIKE`` clause.

    Returns:
        str: Escaped term.
    """
    return (
        term.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )
