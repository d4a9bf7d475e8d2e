# ==============================================================================
# 模块: homepage/service.py
# 功能: 首页配置的读取、管理员编辑与启动时的默认数据写入
# ==============================================================================
"""Homepage config service."""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import store_errors
from core.exceptions import HomepageConfigNotFound, ValidationError
from core.permissions import CallerIdentity, Capability, ensure_allowed
from common.utils import is_valid_id
from .models import HomepageConfig
from .schemas import HomepageConfigUpdate

logger = logging.getLogger(__name__)

DEFAULT_MISSION = "为全球用户提供最新、最全面的中国研究报告和市场分析资料"
DEFAULT_FEATURES = ["权威来源", "实时更新", "专业分类", "便捷下载"]
DEFAULT_ADVANTAGES = [
    "汇集国内外知名研究机构的权威报告",
    "每日更新最新研报，把握市场动态",
    "按行业、主题精细分类，快速找到所需",
    "一键下载，支持在线预览和离线阅读",
]


class HomepageService:
    """Service class for the homepage configuration."""

    async def get_homepage_config(self, db: AsyncSession) -> HomepageConfig | None:
        """Return the most recently updated config row, or ``None``."""
        async with store_errors("get_homepage_config"):
            result = await db.execute(
                select(HomepageConfig)
                .order_by(HomepageConfig.updated_at.desc(), HomepageConfig.id)
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def update_homepage_config(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        config_id: str,
        patch: HomepageConfigUpdate,
    ) -> HomepageConfig:
        """Apply a partial update to one config row.

        Raises:
            PermissionDenied: If the caller lacks ``homepage:manage``.
            HomepageConfigNotFound: If no row has ``config_id``.
        """
        ensure_allowed(caller, Capability.HOMEPAGE_MANAGE)
        changes = patch.model_dump(exclude_unset=True)
        for key in ("features", "advantages"):
            if key in changes and changes[key] is None:
                raise ValidationError(f"{key} must be a list")

        config = None
        if is_valid_id(config_id):
            async with store_errors("update_homepage_config"):
                config = await db.get(HomepageConfig, config_id)
        if config is None:
            raise HomepageConfigNotFound(config_id)

        for field, value in changes.items():
            setattr(config, field, value)
        async with store_errors("update_homepage_config"):
            await db.flush()
            await db.refresh(config)
        logger.info(f"Homepage config updated: {config_id} fields={sorted(changes)}")
        return config

    async def ensure_default_config(self, db: AsyncSession) -> HomepageConfig | None:
        """Seed the default homepage row when the table is empty.

        Returns:
            HomepageConfig | None: The new row, or ``None`` if one already existed.
        """
        async with store_errors("ensure_default_config"):
            count = (
                await db.execute(select(func.count()).select_from(HomepageConfig))
            ).scalar() or 0
            if count:
                return None
            config = HomepageConfig(
                mission=DEFAULT_MISSION,
                features=list(DEFAULT_FEATURES),
                advantages=list(DEFAULT_ADVANTAGES),
            )
            db.add(config)
            await db.flush()
        logger.info("Default homepage config created")
        return config
