# ==============================================================================
# 模块: profile/schemas.py
# 功能: 用户资料的 Pydantic 模型 (不包含密码哈希)
# ==============================================================================
"""Profile schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ProfileSchema(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = {"from_attributes": True}


# 用户只能修改自己的邮箱; 用户名与角色不可自助修改
class ProfileUpdate(BaseModel):
    email: Optional[EmailStr] = None


class RoleUpdate(BaseModel):
    role: str = Field(..., min_length=1, max_length=20)


class ProfileListResponse(BaseModel):
    total: int = 0
    profiles: list[ProfileSchema] = Field(default_factory=list)
