# ==============================================================================
# 模块: profile/service.py
# 功能: 用户资料的查询、管理员角色变更与本人资料修改
# 设计说明:
#   - Profile 由注册流程创建 (apps/auth), 本系统从不删除 Profile
#   - 角色只允许 user / admin 两种取值, 只有管理员可以修改他人角色
# ==============================================================================
"""Profile service."""
from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import store_errors
from core.exceptions import ProfileNotFound, ValidationError
from core.models.profile import ROLES, Profile
from core.permissions import CallerIdentity, Capability, ensure_allowed
from common.utils import escape_like, is_valid_id
from .schemas import ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    """Service class for profile operations.

    用户资料业务逻辑服务类。
    """

    async def get_profile(self, db: AsyncSession, profile_id: str) -> Profile | None:
        """Get a profile by id, or ``None`` if absent or malformed."""
        if not is_valid_id(profile_id):
            return None
        async with store_errors("get_profile"):
            return await db.get(Profile, profile_id)

    async def list_profiles(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        search: str | None = None,
        role: str | None = None,
    ) -> list[Profile]:
        """List profiles newest first (admin only).

        Args:
            db: Async database session.
            caller: Current caller; must hold ``user:manage``.
            search: Optional case-insensitive match on username or email.
            role: Optional exact role filter.
        """
        ensure_allowed(caller, Capability.USER_MANAGE)
        stmt = select(Profile)
        if search:
            pattern = f"%{escape_like(search)}%"
            stmt = stmt.where(
                or_(
                    Profile.username.ilike(pattern, escape="\\"),
                    Profile.email.ilike(pattern, escape="\\"),
                )
            )
        if role:
            stmt = stmt.where(Profile.role == role)
        async with store_errors("list_profiles"):
            result = await db.execute(
                stmt.order_by(Profile.created_at.desc(), Profile.id)
            )
            return list(result.scalars().all())

    async def update_user_role(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        profile_id: str,
        role: str,
    ) -> Profile:
        """Change another profile's role.

        Raises:
            PermissionDenied: If the caller lacks ``user:manage``.
            ValidationError: If ``role`` is not ``user`` or ``admin``.
            ProfileNotFound: If no profile has ``profile_id``.
        """
        ensure_allowed(caller, Capability.USER_MANAGE)
        if role not in ROLES:
            raise ValidationError(
                f"Invalid role: {role}",
                errors=[{"field": "role", "allowed": list(ROLES)}],
            )
        profile = await self.get_profile(db, profile_id)
        if profile is None:
            raise ProfileNotFound(profile_id)

        previous = profile.role
        profile.role = role
        async with store_errors("update_user_role"):
            await db.flush()
            await db.refresh(profile)
        logger.info(
            f"Role of {profile.username} changed {previous} -> {role} "
            f"by {caller.subject_id}"
        )
        return profile

    async def update_own_profile(
        self, db: AsyncSession, caller: CallerIdentity, patch: ProfileUpdate
    ) -> Profile:
        """Update the caller's own editable fields (email)."""
        ensure_allowed(caller, Capability.PROFILE_SELF)
        profile = await self.get_profile(db, caller.subject_id)
        if profile is None:
            raise ProfileNotFound(caller.subject_id)

        changes = patch.model_dump(exclude_unset=True)
        if "email" in changes:
            email = changes["email"]
            profile.email = email.lower() if email else None
        async with store_errors("update_own_profile"):
            await db.flush()
            await db.refresh(profile)
        return profile
