# ==============================================================================
# 模块: category/schemas.py
# 功能: 分类模块的 Pydantic 请求/响应模型
# ==============================================================================
"""Category schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _check_name(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("name must not be blank")
    return value


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _check_name(v)


# 部分更新：未提供的字段保持原值；name 显式置 null 由 service 拒绝
class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _check_name(v)


class CategorySchema(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = {"from_attributes": True}


class CategoryListResponse(BaseModel):
    total: int = 0
    categories: list[CategorySchema] = Field(default_factory=list)
