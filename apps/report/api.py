# ==============================================================================
# 模块: report/api.py
# 功能: 研报(Report)模块的 RESTful API 端点定义
# 架构角色: 作为研报模块的对外接口层(Controller层), 提供:
#   1. 公开的目录浏览: 列表 (过滤/搜索/排序/分页) 与详情
#   2. 公开的计数与下载记录: 浏览数 +1、下载数 +1、写下载日志
#   3. 管理员维护: 创建、部分更新、删除、批量创建、批量删除、Excel 导入
# 设计说明:
#   - 调用方身份通过 Caller 依赖显式传入 service, 能力检查在 service 内完成
#   - 领域异常 (NotFound / ValidationError / PermissionDenied / StoreUnavailable)
#     由 main.py 注册的异常处理器统一转换为 HTTP 响应
# ==============================================================================
"""Report API endpoints."""
from __future__ import annotations

import io
import logging
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from apps.download.schemas import DownloadLogSchema
from apps.download.service import DownloadService
from core.database import get_session
from core.dependencies import Caller, require_capability
from core.permissions import CallerIdentity, Capability
from settings import settings
from .importer import TEMPLATE_FILENAME, build_template, parse_workbook
from .schemas import (
    ImportResult,
    ReportBatchCreate,
    ReportBatchDelete,
    ReportCreate,
    ReportPage,
    ReportQuery,
    ReportSchema,
    ReportUpdate,
    SortField,
    SortOrder,
)
from .service import ReportService

# 初始化模块级别的日志记录器
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class DownloadResponse(BaseModel):
    pdf_url: str
    log: DownloadLogSchema


# --------------------------------------------------------------------------
# GET /reports - 研报目录
# 参数:
#   - page / page_size: 分页 (page 从 1 开始)
#   - category_id: 分类精确过滤
#   - search: 标题或描述的子串搜索 (不区分大小写)
#   - sort_by / sort_order: 排序字段与方向
# 返回: ReportPage, 包含过滤后的总数和当前页
# --------------------------------------------------------------------------
@router.get("", response_model=ReportPage)
async def list_reports(
    page: int = Query(1),
    page_size: Optional[int] = Query(default=None),
    category_id: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    sort_by: SortField = Query(default="created_at"),
    sort_order: SortOrder = Query(default="desc"),
    db: AsyncSession = Depends(get_session),
):
    query = ReportQuery(
        page=page,
        page_size=page_size if page_size is not None else settings.default_page_size,
        category_id=category_id,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    service = ReportService()
    return await service.list_reports(db, query)


# --------------------------------------------------------------------------
# POST /reports - 创建研报 (需要 report:manage)
# --------------------------------------------------------------------------
@router.post("", response_model=ReportSchema, status_code=status.HTTP_201_CREATED)
async def create_report(
    data: ReportCreate,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = ReportService()
    report = await service.create_report(db, caller, data)
    return ReportSchema.model_validate(report)


# --------------------------------------------------------------------------
# POST /reports/batch - 批量创建 (全部成功或全部失败)
# --------------------------------------------------------------------------
@router.post(
    "/batch", response_model=list[ReportSchema], status_code=status.HTTP_201_CREATED
)
async def create_reports_batch(
    data: ReportBatchCreate,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = ReportService()
    reports = await service.create_reports_batch(db, caller, data.reports)
    return [ReportSchema.model_validate(r) for r in reports]


# --------------------------------------------------------------------------
# POST /reports/batch-delete - 批量删除 (未知 id 忽略, 可重复调用)
# --------------------------------------------------------------------------
@router.post("/batch-delete")
async def delete_reports_batch(
    data: ReportBatchDelete,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = ReportService()
    deleted = await service.delete_reports_batch(db, caller, data.ids)
    return {"status": "ok", "deleted": deleted}


# --------------------------------------------------------------------------
# GET /reports/import/template - 下载 Excel 导入模板
# --------------------------------------------------------------------------
@router.get("/import/template")
async def download_import_template(
    caller: CallerIdentity = require_capability(Capability.REPORT_MANAGE),
):
    return Response(
        content=build_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


# --------------------------------------------------------------------------
# POST /reports/import - 上传 Excel 批量导入
# 缺少标题或下载地址的行被跳过; 其余行必须全部合法才会写入
# --------------------------------------------------------------------------
@router.post(
    "/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED
)
async def import_reports(
    file: UploadFile = File(...),
    caller: CallerIdentity = require_capability(Capability.REPORT_MANAGE),
    db: AsyncSession = Depends(get_session),
):
    content = await file.read()
    parsed = parse_workbook(io.BytesIO(content), max_rows=settings.import_max_rows)
    service = ReportService()
    reports = await service.create_reports_batch(db, caller, parsed.rows)
    logger.info(f"Imported {len(reports)} report(s) from {file.filename}")
    return ImportResult(
        created=len(reports),
        skipped=parsed.skipped,
        reports=[ReportSchema.model_validate(r) for r in reports],
    )


# --------------------------------------------------------------------------
# GET /reports/{report_id} - 研报详情 (公开)
# 不存在或 id 格式不合法时返回 404
# --------------------------------------------------------------------------
@router.get("/{report_id}", response_model=ReportSchema)
async def get_report(
    report_id: str,
    db: AsyncSession = Depends(get_session),
):
    service = ReportService()
    report = await service.get_report(db, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return ReportSchema.model_validate(report)


@router.patch("/{report_id}", response_model=ReportSchema)
async def update_report(
    report_id: str,
    patch: ReportUpdate,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = ReportService()
    report = await service.update_report(db, caller, report_id, patch)
    return ReportSchema.model_validate(report)


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = ReportService()
    await service.delete_report(db, caller, report_id)
    return {"status": "ok"}


# --------------------------------------------------------------------------
# 计数器端点 (公开, 无响应体)
# --------------------------------------------------------------------------
@router.post("/{report_id}/view", status_code=status.HTTP_204_NO_CONTENT)
async def increment_view_count(
    report_id: str,
    db: AsyncSession = Depends(get_session),
):
    service = ReportService()
    await service.increment_view_count(db, report_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{report_id}/download-count", status_code=status.HTTP_204_NO_CONTENT)
async def increment_download_count(
    report_id: str,
    db: AsyncSession = Depends(get_session),
):
    service = ReportService()
    await service.increment_download_count(db, report_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --------------------------------------------------------------------------
# POST /reports/{report_id}/downloads - 仅写下载日志 (匿名允许)
# --------------------------------------------------------------------------
@router.post(
    "/{report_id}/downloads",
    response_model=DownloadLogSchema,
    status_code=status.HTTP_201_CREATED,
)
async def log_download(
    report_id: str,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = DownloadService()
    log = await service.log_download(db, report_id, caller)
    return DownloadLogSchema.model_validate(log)


# --------------------------------------------------------------------------
# POST /reports/{report_id}/download - 下载: 写日志并递增下载数
# 两步处于同一请求事务中, 一起提交或一起回滚
# --------------------------------------------------------------------------
@router.post("/{report_id}/download", response_model=DownloadResponse)
async def download_report(
    report_id: str,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    log = await DownloadService().record_download(db, report_id, caller)
    report = await ReportService().get_report(db, report_id)
    return DownloadResponse(
        pdf_url=report.pdf_url,
        log=DownloadLogSchema.model_validate(log),
    )
