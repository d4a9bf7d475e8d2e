# ==========================================================================
# 认证数据模型（Schema）模块
# --------------------------------------------------------------------------
# 本模块定义认证相关 API 的请求体与响应体数据结构，基于 Pydantic v2。
#   1. 注册 / 登录请求模型
#   2. 令牌响应与刷新请求模型
#   3. 修改密码请求模型
#
# 当前用户信息的响应结构复用 apps.profile.schemas.ProfileSchema。
# ==========================================================================

"""Authentication schemas for ReportHub."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

# 用户名仅允许字母、数字与下划线
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


# --------------------------------------------------------------------------
# 用户注册请求模型
# --------------------------------------------------------------------------
class UserRegisterRequest(BaseModel):
    """Request schema for user registration.

    Attributes:
        username: Username (letters, digits, underscore; 3-50 chars).
        email: Optional email address.
        password: Plaintext password (6-100 chars).
    """

    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=6, max_length=100)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate and normalize the username.

        校验用户名格式，并统一转为小写。

        Raises:
            ValueError: If username contains characters outside ``[A-Za-z0-9_]``.
        """
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "Username may only contain letters, digits and underscores"
            )
        return v.lower()


class UserLoginRequest(BaseModel):
    """Request schema for user login."""

    # 用户名或邮箱
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# --------------------------------------------------------------------------
# 令牌响应模型
# --------------------------------------------------------------------------
class TokenResponse(BaseModel):
    """Response schema for token endpoints.

    Attributes:
        access_token: JWT access token.
        refresh_token: JWT refresh token.
        token_type: Token type (bearer).
        expires_in: Access token lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class ChangePasswordRequest(BaseModel):
    """Request schema for password change."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)
