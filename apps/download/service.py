# ==============================================================================
# 模块: download/service.py
# 功能: 下载记录的业务逻辑服务层
# 架构角色: 负责写入下载审计记录, 以及按用户/按研报分页查询。
# 设计说明:
#   - log_download 接受匿名调用方, user_id 记为空
#   - record_download 在同一会话事务中写日志并递增下载数,
#     两者随请求一起提交或一起回滚
#   - 查询权限: 用户只能查看自己的下载记录, 管理员可查看任何人;
#     按研报查询下载记录需要 download:audit 能力
# ==============================================================================
"""Download log service."""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.report.models import Report
from apps.report.service import ReportService
from core.database import store_errors
from core.exceptions import ReportNotFound, ValidationError
from core.permissions import CallerIdentity, Capability, ensure_allowed
from common.utils import is_valid_id, page_offset
from settings import settings
from .models import DownloadLog
from .schemas import DownloadLogPage, UserDownloadLogSchema

logger = logging.getLogger(__name__)


class DownloadService:
    """Service class for download logging and audit queries."""

    async def log_download(
        self, db: AsyncSession, report_id: str, caller: CallerIdentity
    ) -> DownloadLog:
        """Append one download log row.

        Args:
            db: Async database session.
            report_id: Downloaded report.
            caller: Current caller; anonymous callers produce ``user_id = NULL``.

        Returns:
            DownloadLog: The inserted row.

        Raises:
            ReportNotFound: If the report does not exist.
        """
        await self._ensure_report(db, report_id)
        log = DownloadLog(report_id=report_id, user_id=caller.subject_id)
        async with store_errors("log_download"):
            db.add(log)
            await db.flush()
        logger.info(f"Download logged: report={report_id} user={caller.subject_id}")
        return log

    async def record_download(
        self, db: AsyncSession, report_id: str, caller: CallerIdentity
    ) -> DownloadLog:
        """Log a download and bump ``download_count`` in the same transaction."""
        log = await self.log_download(db, report_id, caller)
        await ReportService().increment_download_count(db, report_id)
        return log

    async def list_user_downloads(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        user_id: str,
        page: int = 1,
        page_size: int = 10,
    ) -> DownloadLogPage:
        """List a user's downloads, newest first, each with its report.

        Raises:
            PermissionDenied: If the caller is neither ``user_id`` nor an admin.
        """
        # 查看自己的记录只需登录; 查看他人记录需要审计能力
        if caller.is_authenticated and caller.subject_id == user_id:
            ensure_allowed(caller, Capability.PROFILE_SELF)
        else:
            ensure_allowed(caller, Capability.DOWNLOAD_AUDIT)
        return await self._page(db, DownloadLog.user_id == user_id, page, page_size)

    async def list_report_downloads(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        report_id: str,
        page: int = 1,
        page_size: int = 10,
    ) -> DownloadLogPage:
        """List the download logs of one report, newest first (audit)."""
        ensure_allowed(caller, Capability.DOWNLOAD_AUDIT)
        return await self._page(
            db, DownloadLog.report_id == report_id, page, page_size
        )

    async def _page(
        self, db: AsyncSession, condition, page: int, page_size: int
    ) -> DownloadLogPage:
        if page < 1:
            raise ValidationError("page must be >= 1")
        if page_size < 1:
            raise ValidationError("page_size must be >= 1")
        page_size = min(page_size, settings.max_page_size)

        async with store_errors("list_downloads"):
            count_result = await db.execute(
                select(func.count()).select_from(DownloadLog).where(condition)
            )
            total = count_result.scalar() or 0
            result = await db.execute(
                select(DownloadLog)
                .where(condition)
                .order_by(DownloadLog.downloaded_at.desc(), DownloadLog.id)
                .offset(page_offset(page, page_size))
                .limit(page_size)
                .execution_options(populate_existing=True)
            )
            logs = list(result.scalars().all())
        return DownloadLogPage(
            total=total,
            logs=[UserDownloadLogSchema.model_validate(log) for log in logs],
        )

    async def _ensure_report(self, db: AsyncSession, report_id: str) -> None:
        if not is_valid_id(report_id):
            raise ReportNotFound(report_id)
        async with store_errors("check_report"):
            result = await db.execute(select(Report.id).where(Report.id == report_id))
            found = result.scalar_one_or_none()
        if found is None:
            raise ReportNotFound(report_id)
