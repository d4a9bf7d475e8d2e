# ==========================================================================
# 管理后台 API 模块
# --------------------------------------------------------------------------
# 本模块是 ReportHub 的管理后台接口层。
# 提供以下核心管理能力：
#   1. 仪表盘统计 —— 研报数、下载次数、用户数、总浏览量
#   2. 用户管理   —— 列表查询（支持搜索与角色筛选）、角色变更
#
# 架构位置：
#   apps/admin/api.py 属于"管理应用"(admin app)的路由层，
#   通过 FastAPI 的 APIRouter 注册到主应用。能力检查
#   (stats:read / user:manage) 由对应的 service 方法完成。
# ==========================================================================

"""Admin API endpoints for ReportHub."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from apps.profile.schemas import ProfileListResponse, ProfileSchema, RoleUpdate
from apps.profile.service import ProfileService
from core.database import get_session
from core.dependencies import Caller
from .schemas import Statistics
from .service import StatisticsService

logger = logging.getLogger(__name__)

# 创建管理后台路由器，所有端点统一挂载在 /admin 前缀下
router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================================================
# Dashboard Stats
# ============================================================================

@router.get("/stats", response_model=Statistics)
async def get_stats(
    caller: Caller,
    session: AsyncSession = Depends(get_session),
) -> Statistics:
    """Get dashboard statistics for the admin overview.

    Returns:
        Statistics: Total reports, downloads, users and views.
    """
    service = StatisticsService()
    return await service.get_statistics(session, caller)


# ============================================================================
# User Management
# ============================================================================

@router.get("/users", response_model=ProfileListResponse)
async def list_users(
    caller: Caller,
    search: Optional[str] = None,  # 搜索用户名或邮箱
    role: Optional[str] = None,    # 按角色筛选
    session: AsyncSession = Depends(get_session),
) -> ProfileListResponse:
    """List profiles newest first (admin only)."""
    service = ProfileService()
    profiles = await service.list_profiles(session, caller, search=search, role=role)
    return ProfileListResponse(
        total=len(profiles),
        profiles=[ProfileSchema.model_validate(p) for p in profiles],
    )


@router.put("/users/{user_id}/role")
async def update_user_role(
    user_id: str,             # 路径参数：目标用户 ID
    update: RoleUpdate,       # 请求体：新的角色名 (user / admin)
    caller: Caller,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    """Update a user's role (admin only).

    Returns:
        Dict[str, Any]: Status message and the updated profile.
    """
    service = ProfileService()
    profile = await service.update_user_role(session, caller, user_id, update.role)
    return {
        "status": "ok",
        "message": f"Role updated to {update.role}",
        "profile": ProfileSchema.model_validate(profile).model_dump(mode="json"),
    }
