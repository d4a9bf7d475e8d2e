# ==============================================================================
# 模块: profile/api.py
# 功能: 用户资料 API - 查看资料与修改本人资料 (均需登录)
#       管理员的用户列表与角色变更位于 apps/admin/api.py
# ==============================================================================
"""Profile API endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import AuthenticatedCaller
from .schemas import ProfileSchema, ProfileUpdate
from .service import ProfileService

router = APIRouter(tags=["Profiles"])


@router.patch("/me", response_model=ProfileSchema)
async def update_own_profile(
    patch: ProfileUpdate,
    caller: AuthenticatedCaller,
    db: AsyncSession = Depends(get_session),
):
    service = ProfileService()
    profile = await service.update_own_profile(db, caller, patch)
    return ProfileSchema.model_validate(profile)


@router.get("/{profile_id}", response_model=ProfileSchema)
async def get_profile(
    profile_id: str,
    caller: AuthenticatedCaller,
    db: AsyncSession = Depends(get_session),
):
    service = ProfileService()
    profile = await service.get_profile(db, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileSchema.model_validate(profile)
