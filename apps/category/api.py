# ==============================================================================
# 模块: category/api.py
# 功能: 分类(Category)模块的 RESTful API 端点定义
# 架构角色: 公开的分类列表查询 + 管理员分类增删改。
#           权限检查由 CategoryService 内部的 ensure_allowed 完成，
#           PermissionDenied 等领域异常由 main.py 中的统一处理器转换为 HTTP 响应。
# ==============================================================================
"""Category API endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import Caller
from .schemas import (
    CategoryCreate,
    CategoryListResponse,
    CategorySchema,
    CategoryUpdate,
)
from .service import CategoryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Categories"])


# --------------------------------------------------------------------------
# GET /categories - 获取全部分类 (公开)
# --------------------------------------------------------------------------
@router.get("", response_model=CategoryListResponse)
async def list_categories(db: AsyncSession = Depends(get_session)):
    service = CategoryService()
    categories = await service.list_categories(db)
    return CategoryListResponse(
        total=len(categories),
        categories=[CategorySchema.model_validate(c) for c in categories],
    )


@router.get("/{category_id}", response_model=CategorySchema)
async def get_category(category_id: str, db: AsyncSession = Depends(get_session)):
    service = CategoryService()
    category = await service.get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return CategorySchema.model_validate(category)


# --------------------------------------------------------------------------
# POST /categories - 创建分类 (需要 category:manage)
# --------------------------------------------------------------------------
@router.post("", response_model=CategorySchema, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = CategoryService()
    category = await service.create_category(db, caller, data)
    return CategorySchema.model_validate(category)


@router.patch("/{category_id}", response_model=CategorySchema)
async def update_category(
    category_id: str,
    patch: CategoryUpdate,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = CategoryService()
    category = await service.update_category(db, caller, category_id, patch)
    return CategorySchema.model_validate(category)


# --------------------------------------------------------------------------
# DELETE /categories/{category_id} - 删除分类
# 引用该分类的研报 category_id 被置空, 研报本身保留
# --------------------------------------------------------------------------
@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    caller: Caller,
    db: AsyncSession = Depends(get_session),
):
    service = CategoryService()
    await service.delete_category(db, caller, category_id)
    return {"status": "ok"}
