# ==========================================================================
# 认证 API 模块
# --------------------------------------------------------------------------
# 本模块是 ReportHub 的身份提供方接口层，负责处理所有与身份认证相关的
# HTTP 请求。采用 JWT（JSON Web Token）无状态认证机制。
#
# 提供以下端点：
#   1. POST /auth/register         —— 用户注册（默认角色 user）
#   2. POST /auth/login            —— 用户登录，返回 access_token + refresh_token
#   3. POST /auth/refresh          —— 使用 refresh_token 刷新 access_token
#   4. GET  /auth/me               —— 获取当前登录用户资料
#   5. POST /auth/change-password  —— 修改当前用户密码
#
# 架构位置：
#   业务逻辑委托给 AuthService（service.py），数据校验由 schemas.py 负责。
#   所有端点统一挂载在 /auth 前缀下。
# ==========================================================================

"""Authentication API endpoints for ReportHub."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.profile.schemas import ProfileSchema
from core.database import get_session
from core.dependencies import CurrentProfile
from settings import settings

from .schemas import (
    ChangePasswordRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserLoginRequest,
    UserRegisterRequest,
)
from .service import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"])


# --------------------------------------------------------------------------
# 用户注册端点
# --------------------------------------------------------------------------
@router.post("/register", response_model=ProfileSchema, status_code=status.HTTP_201_CREATED)
async def register(
    request: UserRegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> ProfileSchema:
    """Register a new profile.

    Raises:
        HTTPException: 400 if the username or email already exists.
    """
    try:
        profile = await AuthService.register(
            session=session,
            username=request.username,
            password=request.password,
            email=request.email,
        )
    except ValueError as e:
        # AuthService 用 ValueError 表示业务校验失败（如用户名重复）
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return ProfileSchema.model_validate(profile)


# --------------------------------------------------------------------------
# 用户登录端点
# --------------------------------------------------------------------------
@router.post("/login", response_model=TokenResponse)
async def login(
    request: UserLoginRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Login and receive access and refresh tokens.

    Raises:
        HTTPException: 401 if credentials are invalid.
    """
    try:
        _, access_token, refresh_token = await AuthService.login(
            session=session,
            username=request.username,
            password=request.password,
        )
    except ValueError as e:
        # 附带 WWW-Authenticate 头部，符合 Bearer 规范
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    # expires_in 以秒为单位
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


# --------------------------------------------------------------------------
# 令牌刷新端点
# --------------------------------------------------------------------------
@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    request: RefreshTokenRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    try:
        access_token, refresh_token = await AuthService.refresh_tokens(
            session=session,
            refresh_token=request.refresh_token,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=ProfileSchema)
async def get_current_profile_info(profile: CurrentProfile) -> ProfileSchema:
    """Return the profile of the current bearer token."""
    return ProfileSchema.model_validate(profile)


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    profile: CurrentProfile,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Change the current profile's password.

    Raises:
        HTTPException: 400 if the current password is incorrect.
    """
    try:
        await AuthService.change_password(
            session=session,
            profile=profile,
            current_password=request.current_password,
            new_password=request.new_password,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return {"status": "ok", "message": "Password changed successfully"}
