# =============================================================================
# 安全工具模块
# =============================================================================
# 本模块提供 ReportHub 身份提供方的核心安全功能，包括：
#   1. 密码哈希与验证（基于 bcrypt 算法）
#   2. JWT 访问令牌和刷新令牌的创建与解析
#
# 架构角色：
#   - 被认证依赖（dependencies.py）和 Profile 模型调用
#   - JWT 的 "sub" 声明保存 Profile.id，即数据访问层看到的 subject 标识
#
# 设计决策：
#   - 直接使用 bcrypt 库，显式截断到 72 字节输入上限
#   - JWT 令牌分为 access token（短期）和 refresh token（长期）两种类型，
#     通过 payload 中的 "type" 字段区分
#   - 延迟导入 settings，避免模块间循环依赖
# =============================================================================

"""Security utilities for ReportHub.

Provides password hashing and JWT token management.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt.

    The password is truncated to 72 bytes to match bcrypt's input limit.

    Args:
        password: Plaintext password to hash.

    Returns:
        str: Bcrypt hash string including salt.
    """
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a bcrypt hash.

    Args:
        plain_password: Password provided by the user.
        hashed_password: Stored bcrypt hash.

    Returns:
        bool: ``True`` if the password matches the hash, otherwise ``False``.
    """
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # 存储的哈希格式不合法
        return False


def _create_token(
    data: dict[str, Any],
    token_type: str,
    expires_delta: timedelta,
) -> str:
    from settings import settings

    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    # "type" 用于区分访问令牌和刷新令牌，防止令牌误用
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT access token.

    Args:
        data: Payload data to embed in the token (``sub`` = profile id).
        expires_delta: Optional override for token lifetime.

    Returns:
        str: Encoded JWT access token.
    """
    from settings import settings

    return _create_token(
        data,
        TOKEN_TYPE_ACCESS,
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes),
    )


def create_refresh_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT refresh token.

    Args:
        data: Payload data to embed in the token.
        expires_delta: Optional override for token lifetime.

    Returns:
        str: Encoded JWT refresh token.
    """
    from settings import settings

    return _create_token(
        data,
        TOKEN_TYPE_REFRESH,
        expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days),
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and verify a JWT token.

    Validates signature, algorithm, and expiration. Returns ``None`` on any
    JWT error instead of raising.

    Args:
        token: Encoded JWT string.

    Returns:
        dict[str, Any] | None: Decoded payload if valid, otherwise ``None``.
    """
    from settings import settings

    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None
