# ==============================================================================
# 模块: homepage/schemas.py
# 功能: 首页配置的 Pydantic 模型
# ==============================================================================
"""Homepage config schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _drop_blank(items: Optional[list[str]]) -> Optional[list[str]]:
    # 管理后台按行编辑列表, 空行不保存
    if items is None:
        return None
    return [item.strip() for item in items if item and item.strip()]


class HomepageConfigUpdate(BaseModel):
    mission: Optional[str] = None
    features: Optional[list[str]] = None
    advantages: Optional[list[str]] = None

    @field_validator("features", "advantages")
    @classmethod
    def strip_items(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return _drop_blank(v)


class HomepageConfigSchema(BaseModel):
    id: str
    mission: Optional[str] = None
    features: list[str] = Field(default_factory=list)
    advantages: list[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None
    model_config = {"from_attributes": True}
