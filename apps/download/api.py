# ==============================================================================
# 模块: download/api.py
# 功能: 下载记录查询的 API 端点
# 架构角色: 用户查看自己的下载历史; 管理员按用户或按研报审计下载记录。
#           写入下载记录的端点位于 report/api.py (/reports/{id}/download...)
# ==============================================================================
"""Download log API endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import Caller
from .schemas import DownloadLogPage
from .service import DownloadService

router = APIRouter(tags=["Downloads"])


# --------------------------------------------------------------------------
# GET /downloads/users/{user_id} - 某用户的下载历史
# 本人或管理员可访问, 每条记录附带研报详情
# --------------------------------------------------------------------------
@router.get("/users/{user_id}", response_model=DownloadLogPage)
async def list_user_downloads(
    user_id: str,
    caller: Caller,
    page: int = Query(1),
    page_size: int = Query(10),
    db: AsyncSession = Depends(get_session),
):
    service = DownloadService()
    return await service.list_user_downloads(
        db, caller, user_id, page=page, page_size=page_size
    )


# --------------------------------------------------------------------------
# GET /downloads/reports/{report_id} - 某研报的下载记录 (需要 download:audit)
# --------------------------------------------------------------------------
@router.get("/reports/{report_id}", response_model=DownloadLogPage)
async def list_report_downloads(
    report_id: str,
    caller: Caller,
    page: int = Query(1),
    page_size: int = Query(10),
    db: AsyncSession = Depends(get_session),
):
    service = DownloadService()
    return await service.list_report_downloads(
        db, caller, report_id, page=page, page_size=page_size
    )
