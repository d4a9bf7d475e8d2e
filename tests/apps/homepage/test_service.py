"""Tests for apps/homepage/service.py — homepage configuration.

首页配置业务逻辑测试用例。
"""

from __future__ import annotations

import pytest

from apps.homepage.schemas import HomepageConfigUpdate
from apps.homepage.service import DEFAULT_FEATURES, HomepageService
from core.exceptions import HomepageConfigNotFound, PermissionDenied, ValidationError

# Mark all tests in this module as integration tests requiring database
pytestmark = pytest.mark.integration


class TestHomepageService:
    """Test seeding, reading and updating the homepage row."""

    @pytest.mark.asyncio
    async def test_empty_table_reads_none(self, db_session):
        assert await HomepageService().get_homepage_config(db_session) is None

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db_session):
        service = HomepageService()
        seeded = await service.ensure_default_config(db_session)
        assert seeded is not None
        assert seeded.features == list(DEFAULT_FEATURES)
        assert len(seeded.advantages) == 4
        assert await service.ensure_default_config(db_session) is None

        current = await service.get_homepage_config(db_session)
        assert current.id == seeded.id

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, admin_caller):
        service = HomepageService()
        seeded = await service.ensure_default_config(db_session)
        await db_session.commit()

        updated = await service.update_homepage_config(
            db_session,
            admin_caller,
            seeded.id,
            HomepageConfigUpdate(features=["快速检索", "  ", "权威来源"]),
        )
        assert updated.features == ["快速检索", "权威来源"]
        assert updated.mission == seeded.mission

    @pytest.mark.asyncio
    async def test_null_list_is_rejected(self, db_session, admin_caller):
        service = HomepageService()
        seeded = await service.ensure_default_config(db_session)
        with pytest.raises(ValidationError):
            await service.update_homepage_config(
                db_session, admin_caller, seeded.id, HomepageConfigUpdate(advantages=None)
            )

    @pytest.mark.asyncio
    async def test_missing_row(self, db_session, admin_caller):
        from common.utils import new_id

        with pytest.raises(HomepageConfigNotFound):
            await HomepageService().update_homepage_config(
                db_session, admin_caller, new_id(), HomepageConfigUpdate(mission="x")
            )

    @pytest.mark.asyncio
    async def test_user_cannot_update(self, db_session, user_caller):
        service = HomepageService()
        seeded = await service.ensure_default_config(db_session)
        with pytest.raises(PermissionDenied):
            await service.update_homepage_config(
                db_session, user_caller, seeded.id, HomepageConfigUpdate(mission="x")
            )
