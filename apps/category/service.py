# ==============================================================================
# 模块: category/service.py
# 功能: 分类模块的业务逻辑服务层
# 架构角色: 提供分类的查询与管理员增删改。
# 设计说明:
#   - 所有数据库调用包裹在 store_errors() 中，底层错误统一转换为 StoreUnavailable
#   - 删除分类时先把引用它的研报 category_id 置空，再删除分类本身，
#     两步在同一事务中完成，不依赖数据库方言的外键行为
# ==============================================================================
"""Category service."""
from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import store_errors
from core.exceptions import CategoryNotFound, ValidationError
from core.permissions import CallerIdentity, Capability, ensure_allowed
from common.utils import is_valid_id
from .models import Category
from .schemas import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    """Service class for category operations.

    分类业务逻辑服务类。
    """

    async def list_categories(self, db: AsyncSession) -> list[Category]:
        """List all categories, newest first."""
        async with store_errors("list_categories"):
            result = await db.execute(
                select(Category).order_by(Category.created_at.desc(), Category.id)
            )
            return list(result.scalars().all())

    async def get_category(
        self, db: AsyncSession, category_id: str
    ) -> Category | None:
        if not is_valid_id(category_id):
            return None
        async with store_errors("get_category"):
            return await db.get(Category, category_id)

    async def create_category(
        self, db: AsyncSession, caller: CallerIdentity, data: CategoryCreate
    ) -> Category:
        """Create a category.

        Raises:
            PermissionDenied: If the caller lacks ``category:manage``.
            StoreUnavailable: On store failure.
        """
        ensure_allowed(caller, Capability.CATEGORY_MANAGE)
        category = Category(name=data.name, description=data.description)
        async with store_errors("create_category"):
            db.add(category)
            await db.flush()
            await db.refresh(category)
        logger.info(f"Category created: {category.id} ({category.name})")
        return category

    async def update_category(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        category_id: str,
        patch: CategoryUpdate,
    ) -> Category:
        """Apply a partial update to a category.

        Raises:
            CategoryNotFound: If no category has ``category_id``.
            ValidationError: If the patch sets ``name`` to null.
        """
        ensure_allowed(caller, Capability.CATEGORY_MANAGE)
        changes = patch.model_dump(exclude_unset=True)
        # name 列非空：显式传入 null 在访问数据库前拒绝
        if "name" in changes and changes["name"] is None:
            raise ValidationError("name must not be null")
        category = await self.get_category(db, category_id)
        if category is None:
            raise CategoryNotFound(category_id)
        for field, value in changes.items():
            setattr(category, field, value)
        async with store_errors("update_category"):
            await db.flush()
            await db.refresh(category)
        logger.info(f"Category updated: {category_id}")
        return category

    async def delete_category(
        self, db: AsyncSession, caller: CallerIdentity, category_id: str
    ) -> None:
        """Delete a category and detach the reports referencing it.

        Raises:
            CategoryNotFound: If no category has ``category_id``.
        """
        # 延迟导入，避免 report <-> category 模块间的循环依赖
        from apps.report.models import Report

        ensure_allowed(caller, Capability.CATEGORY_MANAGE)
        category = await self.get_category(db, category_id)
        if category is None:
            raise CategoryNotFound(category_id)
        async with store_errors("delete_category"):
            result = await db.execute(
                update(Report)
                .where(Report.category_id == category_id)
                .values(category_id=None)
                .execution_options(synchronize_session=False)
            )
            await db.delete(category)
            await db.flush()
        # 已加载到会话中的研报对象需要重新读取 category 关系
        db.expire_all()
        logger.info(
            f"Category deleted: {category_id}, {result.rowcount} report(s) detached"
        )
