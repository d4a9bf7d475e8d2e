# ==============================================================================
# 模块: admin/service.py
# 功能: 管理后台仪表盘统计
# 设计说明:
#   - 四个聚合查询彼此独立, 任一失败即整体抛出 StoreUnavailable, 不返回部分结果
#   - 浏览量为空表时按 0 计算
# ==============================================================================
"""Statistics service."""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.download.models import DownloadLog
from apps.report.models import Report
from core.database import store_errors
from core.models.profile import Profile
from core.permissions import CallerIdentity, Capability, ensure_allowed
from .schemas import Statistics

logger = logging.getLogger(__name__)


class StatisticsService:
    """Aggregate counters for the admin dashboard."""

    async def get_statistics(
        self, db: AsyncSession, caller: CallerIdentity | None = None
    ) -> Statistics:
        """Compute the dashboard totals.

        Args:
            db: Async database session.
            caller: When given, must hold ``stats:read``. Offline tooling may
                omit it.

        Returns:
            Statistics: Report, download-log and profile counts plus total views.
        """
        if caller is not None:
            ensure_allowed(caller, Capability.STATS_READ)

        async with store_errors("get_statistics"):
            # 研报总数
            reports = (await db.execute(select(func.count(Report.id)))).scalar() or 0
            # 下载记录总数
            downloads = (
                await db.execute(select(func.count(DownloadLog.id)))
            ).scalar() or 0
            # 注册用户总数
            users = (await db.execute(select(func.count(Profile.id)))).scalar() or 0
            # 浏览量总和
            views = (
                await db.execute(select(func.coalesce(func.sum(Report.view_count), 0)))
            ).scalar() or 0

        return Statistics(
            total_reports=reports,
            total_downloads=downloads,
            total_users=users,
            total_views=int(views),
        )
