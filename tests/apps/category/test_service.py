"""Tests for apps/category/service.py — category management.

分类业务逻辑测试用例。
"""

from __future__ import annotations

import pytest

from apps.category.schemas import CategoryCreate, CategoryUpdate
from apps.category.service import CategoryService
from apps.report.schemas import ReportCreate, ReportQuery
from apps.report.service import ReportService
from core.exceptions import CategoryNotFound, PermissionDenied, ValidationError

# Mark all tests in this module as integration tests requiring database
pytestmark = pytest.mark.integration


class TestCategoryService:
    """Test category create, list, update and delete.

    删除分类时，引用它的研报被保留并变为未分类。
    """

    @pytest.mark.asyncio
    async def test_created_category_is_listed(self, db_session, admin_caller):
        service = CategoryService()
        created = await service.create_category(
            db_session, admin_caller, CategoryCreate(name="Equity")
        )
        await db_session.commit()

        listed = await service.list_categories(db_session)
        assert [c.id for c in listed] == [created.id]
        assert listed[0].name == "Equity"

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, admin_caller, category):
        updated = await CategoryService().update_category(
            db_session, admin_caller, category.id, CategoryUpdate(description="Rates & FX")
        )
        assert updated.name == "Macro"
        assert updated.description == "Rates & FX"

    @pytest.mark.asyncio
    async def test_null_name_is_rejected(self, db_session, admin_caller, category):
        service = CategoryService()
        with pytest.raises(ValidationError):
            await service.update_category(
                db_session,
                admin_caller,
                category.id,
                CategoryUpdate.model_validate({"name": None}),
            )
        unchanged = await service.get_category(db_session, category.id)
        assert unchanged.name == "Macro"

    @pytest.mark.asyncio
    async def test_get_malformed_id_returns_none(self, db_session):
        assert await CategoryService().get_category(db_session, "nope") is None

    @pytest.mark.asyncio
    async def test_delete_detaches_reports(self, db_session, admin_caller, category):
        reports = ReportService()
        created = await reports.create_report(
            db_session,
            admin_caller,
            ReportCreate(
                title="Rates", pdf_url="https://example.com/r.pdf", category_id=category.id
            ),
        )
        await db_session.commit()

        await CategoryService().delete_category(db_session, admin_caller, category.id)
        await db_session.commit()

        assert await CategoryService().get_category(db_session, category.id) is None
        survivor = await reports.get_report(db_session, created.id)
        assert survivor is not None
        assert survivor.category_id is None
        assert survivor.category is None

        uncategorized = await reports.list_reports(db_session, ReportQuery())
        assert uncategorized.total == 1

    @pytest.mark.asyncio
    async def test_delete_missing_category(self, db_session, admin_caller):
        from common.utils import new_id

        with pytest.raises(CategoryNotFound):
            await CategoryService().delete_category(db_session, admin_caller, new_id())

    @pytest.mark.asyncio
    async def test_user_cannot_manage_categories(self, db_session, user_caller, category):
        service = CategoryService()
        with pytest.raises(PermissionDenied):
            await service.create_category(db_session, user_caller, CategoryCreate(name="x"))
        with pytest.raises(PermissionDenied):
            await service.delete_category(db_session, user_caller, category.id)
