# ==============================================================================
# 模块: homepage/api.py
# 功能: 首页配置 API - 公开读取, 管理员编辑
# ==============================================================================
"""Homepage config API endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import Caller
from .schemas import HomepageConfigSchema, HomepageConfigUpdate
from .service import HomepageService

router = APIRouter(tags=["Homepage"])


# 没有任何配置行时返回 null, 由前端使用内置文案
@router.get("", response_model=Optional[HomepageConfigSchema])
async def get_homepage_config(db: AsyncSession = Depends(get_session)):
    service = HomepageService()
    config = await service.get_homepage_config(db)
    if config is None:
        return None
    return HomepageConfigSchema.model_validate(config)


@router.patch("/{config_id}", response_model=HomepageConfigSchema)
async def update_homepage_config(
    config_id: str,
    patch: HomepageConfigUpdate,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = HomepageService()
    config = await service.update_homepage_config(db, caller, config_id, patch)
    return HomepageConfigSchema.model_validate(config)
