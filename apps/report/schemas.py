# ==============================================================================
# 模块: report/schemas.py
# 功能: 研报模块的 Pydantic 数据验证与序列化模型 (Schema 层)
# 架构角色: 定义 API 层与 service 层共用的请求体和响应体结构, 负责:
#   1. 研报创建/更新参数验证 (ReportCreate / ReportUpdate)
#   2. 目录查询参数 (ReportQuery)
#   3. 响应数据序列化 (ReportSchema / ReportPage)
# ==============================================================================
"""Report schemas."""
from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from apps.category.schemas import CategorySchema

SortField = Literal["created_at", "published_at", "view_count", "download_count"]
SortOrder = Literal["asc", "desc"]


def _check_pdf_url(value: str) -> str:
    # 仅接受绝对的 http/https 地址
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("pdf_url must be an absolute http(s) URL")
    return value


def _check_title(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("title must not be blank")
    return value


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    # 空白的 category_id 视为未分类
    if value is not None and not value.strip():
        return None
    return value


# --------------------------------------------------------------------------
# ReportCreate - 创建研报的请求模型
# 说明: 计数器与 created_by 由服务端设置, 不接受客户端传入
# --------------------------------------------------------------------------
class ReportCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[str] = None
    pdf_url: str = Field(..., min_length=1, max_length=1024)
    source: Optional[str] = Field(default=None, max_length=255)
    published_at: Optional[date] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _check_title(v)

    @field_validator("category_id")
    @classmethod
    def normalize_category_id(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("pdf_url")
    @classmethod
    def pdf_url_is_http(cls, v: str) -> str:
        return _check_pdf_url(v)


# 部分更新：只写入显式提供的字段
class ReportUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[str] = None
    pdf_url: Optional[str] = Field(default=None, min_length=1, max_length=1024)
    source: Optional[str] = Field(default=None, max_length=255)
    published_at: Optional[date] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _check_title(v)

    @field_validator("category_id")
    @classmethod
    def normalize_category_id(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("pdf_url")
    @classmethod
    def pdf_url_is_http(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_pdf_url(v)


# --------------------------------------------------------------------------
# ReportQuery - 目录查询参数
# 说明:
#   - page / page_size 不在此处做范围约束, 由 ReportService 统一校验,
#     以便直接调用 service 的脚本也得到 ValidationError
#   - search 对 title 与 description 做不区分大小写的子串匹配
# --------------------------------------------------------------------------
class ReportQuery(BaseModel):
    page: int = 1
    page_size: int = 10
    category_id: Optional[str] = None
    search: Optional[str] = None
    sort_by: SortField = "created_at"
    sort_order: SortOrder = "desc"


class ReportSchema(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    pdf_url: str
    source: Optional[str] = None
    published_at: Optional[date] = None
    view_count: int = 0
    download_count: int = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category: Optional[CategorySchema] = None  # 读取时关联出的分类快照
    model_config = {"from_attributes": True}


class ReportPage(BaseModel):
    total: int = 0  # 过滤后的总条数
    reports: list[ReportSchema] = Field(default_factory=list)


class ReportBatchCreate(BaseModel):
    reports: list[ReportCreate] = Field(default_factory=list)


class ReportBatchDelete(BaseModel):
    ids: list[str] = Field(default_factory=list)


class ImportResult(BaseModel):
    created: int = 0
    skipped: int = 0  # 缺少标题或下载地址而被跳过的行数
    reports: list[ReportSchema] = Field(default_factory=list)
