# ==============================================================================
# 模块: report/service.py
# 功能: 研报模块的业务逻辑服务层 (Service 层)
# 架构角色: 位于 API 层和数据库之间, 封装研报目录相关的所有数据访问操作:
#   1. 目录查询: 分类过滤 + 关键字搜索 + 排序 + 分页 + 精确总数
#   2. 单条读取 / 创建 / 部分更新 / 删除
#   3. 批量创建 (全部成功或全部回滚) 与批量删除 (幂等)
#   4. 浏览数 / 下载数计数器的原子递增
# 设计说明:
#   - ReportService 采用无状态设计, 每次请求创建新实例
#   - 所有方法显式接收 AsyncSession, 事务由调用方 (get_session) 管理
#   - 变更操作显式接收 CallerIdentity, 通过 ensure_allowed 统一检查能力
#   - 数据库错误经 store_errors() 转换为 StoreUnavailable
# ==============================================================================
"""Report service."""
from __future__ import annotations

import logging
from typing import Iterable, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from apps.category.models import Category
from apps.download.models import DownloadLog
from core.database import store_errors
from core.exceptions import ReportNotFound, StoreUnavailable, ValidationError
from core.permissions import CallerIdentity, Capability, ensure_allowed
from common.utils import escape_like, is_valid_id, page_offset
from settings import settings
from .models import COUNTER_FIELDS, Report
from .schemas import ReportCreate, ReportPage, ReportQuery, ReportSchema, ReportUpdate

# 初始化模块级日志记录器
logger = logging.getLogger(__name__)

# 目录排序字段 -> ORM 列
SORT_COLUMNS = {
    "created_at": Report.created_at,
    "published_at": Report.published_at,
    "view_count": Report.view_count,
    "download_count": Report.download_count,
}


# --------------------------------------------------------------------------
# ReportService - 研报业务服务类
# --------------------------------------------------------------------------
class ReportService:
    """Service class for report catalog operations.

    研报目录业务逻辑服务类，提供查询、管理与计数器递增功能。
    """

    # ----------------------------------------------------------------------
    # list_reports - 目录查询
    # 逻辑:
    #   1. 校验分页参数 (在访问数据库之前)
    #   2. 组合过滤条件 (分类精确匹配 AND 标题/描述子串匹配)
    #   3. 统计过滤后的总数, 再按排序字段 + id 取出当前页
    # ----------------------------------------------------------------------
    async def list_reports(self, db: AsyncSession, query: ReportQuery) -> ReportPage:
        """List reports matching ``query``.

        Args:
            db: Async database session.
            query: Filters, sort and pagination.

        Returns:
            ReportPage: The requested window and the total of the filtered set.

        Raises:
            ValidationError: If ``page`` or ``page_size`` is not positive.
            StoreUnavailable: On store failure; no partial result is returned.
        """
        if query.page < 1:
            raise ValidationError("page must be >= 1")
        if query.page_size < 1:
            raise ValidationError("page_size must be >= 1")
        page_size = min(query.page_size, settings.max_page_size)

        conditions = []
        if query.category_id:
            conditions.append(Report.category_id == query.category_id)
        if query.search:
            pattern = f"%{escape_like(query.search)}%"
            conditions.append(
                or_(
                    Report.title.ilike(pattern, escape="\\"),
                    Report.description.ilike(pattern, escape="\\"),
                )
            )

        sort_column = SORT_COLUMNS[query.sort_by]
        order = sort_column.asc() if query.sort_order == "asc" else sort_column.desc()

        async with store_errors("list_reports"):
            count_result = await db.execute(
                select(func.count()).select_from(Report).where(*conditions)
            )
            total = count_result.scalar() or 0
            # 以 id 作为第二排序键, 保证相同排序值时分页窗口稳定
            result = await db.execute(
                select(Report)
                .where(*conditions)
                .order_by(order, Report.id.asc())
                .offset(page_offset(query.page, page_size))
                .limit(page_size)
                .execution_options(populate_existing=True)
            )
            reports = list(result.scalars().all())

        return ReportPage(
            total=total,
            reports=[ReportSchema.model_validate(r) for r in reports],
        )

    async def get_report(self, db: AsyncSession, report_id: str) -> Report | None:
        """Get a report with its category, or ``None`` if absent.

        A malformed identifier is treated as absent.
        """
        if not is_valid_id(report_id):
            return None
        async with store_errors("get_report"):
            result = await db.execute(
                select(Report)
                .where(Report.id == report_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def create_report(
        self, db: AsyncSession, caller: CallerIdentity, data: ReportCreate
    ) -> Report:
        """Create one report stamped with the caller as creator.

        Raises:
            PermissionDenied: If the caller lacks ``report:manage``.
            ValidationError: If ``category_id`` names no category.
        """
        reports = await self.create_reports_batch(db, caller, [data])
        return reports[0]

    async def update_report(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        report_id: str,
        patch: ReportUpdate,
    ) -> Report:
        """Apply a partial update. Counters and ``created_by`` are not patchable.

        Raises:
            ReportNotFound: If no report has ``report_id``.
        """
        ensure_allowed(caller, Capability.REPORT_MANAGE)
        report = await self.get_report(db, report_id)
        if report is None:
            raise ReportNotFound(report_id)

        changes = patch.model_dump(exclude_unset=True)
        if "title" in changes and changes["title"] is None:
            raise ValidationError("title must not be null")
        if "pdf_url" in changes and changes["pdf_url"] is None:
            raise ValidationError("pdf_url must not be null")
        if changes.get("category_id") is not None:
            await self._check_categories(db, [changes["category_id"]])

        for field, value in changes.items():
            setattr(report, field, value)
        async with store_errors("update_report"):
            await db.flush()
        logger.info(f"Report updated: {report_id} fields={sorted(changes)}")
        return await self._reload(db, report_id)

    async def delete_report(
        self, db: AsyncSession, caller: CallerIdentity, report_id: str
    ) -> None:
        """Delete a report and its download logs.

        Raises:
            ReportNotFound: If no report has ``report_id``.
        """
        ensure_allowed(caller, Capability.REPORT_MANAGE)
        report = await self.get_report(db, report_id)
        if report is None:
            raise ReportNotFound(report_id)
        async with store_errors("delete_report"):
            await db.execute(
                delete(DownloadLog).where(DownloadLog.report_id == report_id)
            )
            await db.delete(report)
            await db.flush()
        logger.info(f"Report deleted: {report_id}")

    # ----------------------------------------------------------------------
    # create_reports_batch - 批量创建
    # 说明: 所有行在同一事务中插入, 任一失败则整体回滚, 不存在部分成功
    # ----------------------------------------------------------------------
    async def create_reports_batch(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        rows: Sequence[ReportCreate],
    ) -> list[Report]:
        """Insert many reports at once, all stamped ``created_by = caller``.

        Returns:
            list[Report]: Created rows in input order, with ids and categories.

        Raises:
            ValidationError: If ``rows`` is empty or references unknown categories.
        """
        ensure_allowed(caller, Capability.REPORT_MANAGE)
        if not rows:
            raise ValidationError("At least one report is required")
        await self._check_categories(
            db, [row.category_id for row in rows if row.category_id is not None]
        )

        reports = [
            Report(**row.model_dump(), created_by=caller.subject_id) for row in rows
        ]
        async with store_errors("create_reports_batch"):
            db.add_all(reports)
            await db.flush()
        ids = [r.id for r in reports]
        logger.info(f"Created {len(ids)} report(s) by {caller.subject_id}")

        loaded = {r.id: r for r in await self._load_many(db, ids)}
        return [loaded[i] for i in ids]

    async def delete_reports_batch(
        self, db: AsyncSession, caller: CallerIdentity, ids: Iterable[str]
    ) -> int:
        """Delete every report whose id is in ``ids``.

        Unknown ids are ignored and an empty input is a no-op, so repeating
        the call is harmless.

        Returns:
            int: Number of reports actually deleted.
        """
        ensure_allowed(caller, Capability.REPORT_MANAGE)
        wanted = sorted({i for i in ids if is_valid_id(i)})
        if not wanted:
            return 0
        async with store_errors("delete_reports_batch"):
            await db.execute(
                delete(DownloadLog).where(DownloadLog.report_id.in_(wanted))
            )
            result = await db.execute(
                delete(Report)
                .where(Report.id.in_(wanted))
                .execution_options(synchronize_session="fetch")
            )
        deleted = result.rowcount or 0
        logger.info(f"Batch delete: {deleted} of {len(wanted)} report(s) removed")
        return deleted

    # ----------------------------------------------------------------------
    # increment_counter - 计数器递增
    # 逻辑:
    #   1. 首选路径: 在 SAVEPOINT 中执行 "SET f = f + 1" 单条原子语句
    #   2. 原子语句出错时回滚 SAVEPOINT, 退化为乐观 CAS 循环:
    #      读当前值 -> "SET f = v + 1 WHERE f = v" -> 影响行数为 0 则重试
    # 说明: 任何路径都只 +1, 计数器不会减少
    # ----------------------------------------------------------------------
    async def increment_counter(
        self, db: AsyncSession, report_id: str, field: str
    ) -> None:
        """Add exactly 1 to ``field`` of a report.

        Args:
            db: Async database session.
            report_id: Target report.
            field: ``view_count`` or ``download_count``.

        Raises:
            ValidationError: If ``field`` is not a counter.
            ReportNotFound: If the report does not exist.
            StoreUnavailable: If both the atomic path and the fallback fail.
        """
        if field not in COUNTER_FIELDS:
            raise ValidationError(f"Unknown counter field: {field}")
        if not is_valid_id(report_id):
            raise ReportNotFound(report_id)

        try:
            async with db.begin_nested():
                updated = await self._atomic_increment(db, report_id, field)
        except SQLAlchemyError as e:
            logger.warning(
                f"Atomic increment of {field} failed for report {report_id}, "
                f"falling back to compare-and-swap: {e}"
            )
            await self._cas_increment(db, report_id, field)
            return

        if updated == 0:
            raise ReportNotFound(report_id)

    async def increment_view_count(self, db: AsyncSession, report_id: str) -> None:
        await self.increment_counter(db, report_id, "view_count")

    async def increment_download_count(
        self, db: AsyncSession, report_id: str
    ) -> None:
        await self.increment_counter(db, report_id, "download_count")

    async def _atomic_increment(
        self, db: AsyncSession, report_id: str, field: str
    ) -> int:
        column = getattr(Report, field)
        result = await db.execute(
            update(Report)
            .where(Report.id == report_id)
            .values({field: column + 1})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def _cas_increment(
        self, db: AsyncSession, report_id: str, field: str
    ) -> None:
        column = getattr(Report, field)
        attempts = settings.counter_cas_max_attempts
        for attempt in range(1, attempts + 1):
            async with store_errors("increment_counter"):
                current = (
                    await db.execute(select(column).where(Report.id == report_id))
                ).scalar_one_or_none()
                if current is None:
                    raise ReportNotFound(report_id)
                result = await db.execute(
                    update(Report)
                    .where(Report.id == report_id, column == current)
                    .values({field: current + 1})
                    .execution_options(synchronize_session=False)
                )
            if result.rowcount == 1:
                return
            logger.debug(
                f"CAS conflict on {field} of report {report_id} (attempt {attempt})"
            )
        raise StoreUnavailable(
            f"Could not increment {field} after {attempts} attempts"
        )

    async def _check_categories(self, db: AsyncSession, category_ids: list[str]) -> None:
        wanted = set(category_ids)
        if not wanted:
            return
        invalid = {i for i in wanted if not is_valid_id(i)}
        async with store_errors("check_categories"):
            result = await db.execute(
                select(Category.id).where(Category.id.in_(wanted - invalid))
            )
            found = set(result.scalars().all())
        missing = sorted(wanted - found)
        if missing:
            raise ValidationError(
                "Unknown category",
                errors=[{"field": "category_id", "value": m} for m in missing],
            )

    async def _load_many(self, db: AsyncSession, ids: list[str]) -> list[Report]:
        async with store_errors("load_reports"):
            result = await db.execute(
                select(Report)
                .where(Report.id.in_(ids))
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def _reload(self, db: AsyncSession, report_id: str) -> Report:
        reports = await self._load_many(db, [report_id])
        return reports[0]
