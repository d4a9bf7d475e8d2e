# ==========================================================================
# 认证服务模块
# --------------------------------------------------------------------------
# 本模块是 ReportHub 身份提供方的核心业务逻辑层。
# 封装了所有与用户身份认证相关的操作，包括：
#   1. 用户注册 —— 唯一性校验、密码哈希、默认角色 user
#   2. 用户登录 —— 凭据验证、JWT 令牌生成
#   3. 令牌刷新 —— refresh_token 校验与新令牌对生成
#   4. 密码修改 —— 旧密码验证与新密码设置
#   5. 管理员引导 —— 启动时按配置创建初始管理员账户
#
# 设计决策：
#   - 采用静态方法 (staticmethod) 设计，AuthService 作为无状态的服务类
#   - 业务校验失败统一抛出 ValueError，由上层 API 路由统一转换为 HTTP 错误响应
#   - 密码处理委托给 Profile 模型的 set_password / check_password 方法
#   - 令牌的 "sub" 声明即 Profile.id，是数据访问层所见的调用方标识
# ==========================================================================

"""Authentication service for ReportHub."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.profile import ROLE_ADMIN, ROLE_USER, Profile
from core.security import (
    TOKEN_TYPE_REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Service class for authentication operations.

    认证业务逻辑服务类，提供注册、登录、刷新令牌与密码修改等功能。
    """

    # ------------------------------------------------------------------
    # 用户注册
    # ------------------------------------------------------------------
    @staticmethod
    async def register(
        session: AsyncSession,
        username: str,                  # 用户名（将被转为小写）
        password: str,                  # 明文密码（将被哈希处理后存储）
        email: str | None = None,       # 可选邮箱（将被转为小写）
        role: str = ROLE_USER,          # 新账户角色，默认普通用户
    ) -> Profile:
        """Register a new profile.

        Args:
            session: Async database session.
            username: Username (will be lowercased).
            password: Plaintext password.
            email: Optional email address (will be lowercased).
            role: Initial role, ``user`` unless bootstrapping an admin.

        Returns:
            Profile: Newly created profile.

        Raises:
            ValueError: If username or email already exists.
        """
        username = username.lower()
        email = email.lower() if email else None

        conditions = [Profile.username == username]
        if email:
            conditions.append(Profile.email == email)
        result = await session.execute(select(Profile).where(or_(*conditions)))
        existing = result.scalars().first()
        if existing:
            # 区分错误信息：告知用户是用户名还是邮箱已被占用
            if existing.username == username:
                raise ValueError("Username already exists")
            raise ValueError("Email already exists")

        profile = Profile(username=username, email=email, role=role)
        profile.set_password(password)

        session.add(profile)
        # flush 而非 commit：事务由调用方（get_session）统一提交
        await session.flush()
        await session.refresh(profile)

        logger.info(f"Profile registered: {username} ({role})")
        return profile

    # ------------------------------------------------------------------
    # 用户登录
    # ------------------------------------------------------------------
    @staticmethod
    async def login(
        session: AsyncSession,
        username: str,   # 用户名或邮箱
        password: str,
    ) -> tuple[Profile, str, str]:
        """Authenticate a profile and return tokens.

        Returns:
            tuple[Profile, str, str]: (profile, access_token, refresh_token).

        Raises:
            ValueError: If credentials are invalid.
        """
        identifier = username.lower()
        result = await session.execute(
            select(Profile).where(
                or_(Profile.username == identifier, Profile.email == identifier)
            )
        )
        profile = result.scalars().first()

        # 用户不存在与密码错误返回同一错误信息，不暴露具体原因
        if not profile or not profile.check_password(password):
            raise ValueError("Invalid credentials")

        token_data = {"sub": profile.id, "role": profile.role}
        access_token = create_access_token(token_data)
        refresh_token = create_refresh_token(token_data)

        logger.info(f"Profile logged in: {profile.username}")
        return profile, access_token, refresh_token

    # ------------------------------------------------------------------
    # 令牌刷新
    # ------------------------------------------------------------------
    @staticmethod
    async def refresh_tokens(
        session: AsyncSession,
        refresh_token: str,
    ) -> tuple[str, str]:
        """Refresh access token using a refresh token.

        Returns:
            tuple[str, str]: (new_access_token, new_refresh_token).

        Raises:
            ValueError: If token is invalid or the profile is missing.
        """
        payload = decode_token(refresh_token)
        if not payload:
            raise ValueError("Invalid refresh token")

        # 必须是 refresh 类型，防止用 access_token 冒充
        if payload.get("type") != TOKEN_TYPE_REFRESH:
            raise ValueError("Invalid token type")

        subject = payload.get("sub")
        if not subject:
            raise ValueError("Invalid token payload")

        profile = await session.get(Profile, str(subject))
        if not profile:
            raise ValueError("Profile not found")

        # 每次刷新都生成新的令牌对；角色以数据库中的当前值为准
        token_data = {"sub": profile.id, "role": profile.role}
        return create_access_token(token_data), create_refresh_token(token_data)

    # ------------------------------------------------------------------
    # 密码修改
    # ------------------------------------------------------------------
    @staticmethod
    async def change_password(
        session: AsyncSession,
        profile: Profile,
        current_password: str,
        new_password: str,
    ) -> None:
        """Change a profile's password.

        Raises:
            ValueError: If current password is incorrect.
        """
        if not profile.check_password(current_password):
            raise ValueError("Current password is incorrect")

        profile.set_password(new_password)
        await session.flush()
        logger.info(f"Password changed for profile: {profile.username}")

    @staticmethod
    async def get_profile_by_username(
        session: AsyncSession, username: str
    ) -> Profile | None:
        result = await session.execute(
            select(Profile).where(Profile.username == username.lower())
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # 初始管理员引导
    # ------------------------------------------------------------------
    @staticmethod
    async def ensure_admin(
        session: AsyncSession,
        username: str,
        password: str,
        email: str | None = None,
    ) -> Profile | None:
        """Create the bootstrap admin if no profile uses ``username`` yet.

        Returns:
            Profile | None: The created admin, or ``None`` if it already existed.
        """
        if await AuthService.get_profile_by_username(session, username):
            return None
        return await AuthService.register(
            session,
            username=username,
            password=password,
            email=email,
            role=ROLE_ADMIN,
        )
