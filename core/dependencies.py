# =============================================================================
# FastAPI 依赖注入模块
# =============================================================================
# 本模块提供 ReportHub 的身份解析依赖函数。
# 主要职责：
#   1. 从 HTTP 请求中提取和验证 JWT 令牌
#   2. 根据令牌加载当前用户资料（Profile）
#   3. 构造显式的调用方身份 CallerIdentity，传入 service 层
#   4. 提供基于能力（capability）的路由级检查
#
# 设计说明：
#   - 提供了多层依赖，从宽松到严格：
#     get_optional_profile（可选认证） → get_current_profile（必须认证）
#     get_caller（匿名或已认证） → get_authenticated_caller（必须认证）
#   - 数据访问层不读取任何全局会话状态，身份一律通过参数传入
#   - 使用 Annotated 类型别名简化路由函数的类型标注
# =============================================================================

"""FastAPI dependencies for ReportHub.

Resolves bearer tokens into profiles and explicit caller identities.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.models.profile import Profile
from core.permissions import CallerIdentity, Capability, authorize
from core.security import TOKEN_TYPE_ACCESS, decode_token

# auto_error=False：没有携带 Bearer 令牌时返回 None，
# 由具体依赖函数决定是否强制要求认证
http_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _load_profile(token: str, session: AsyncSession) -> Profile | None:
    payload = decode_token(token)
    if not payload or payload.get("type") != TOKEN_TYPE_ACCESS:
        return None
    subject = payload.get("sub")
    if not subject:
        return None
    result = await session.execute(select(Profile).where(Profile.id == str(subject)))
    return result.scalar_one_or_none()


async def get_optional_profile(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(http_bearer)
    ] = None,
    session: AsyncSession = Depends(get_session),
) -> Profile | None:
    """Resolve the profile behind an optional bearer token.

    This dependency does **not** enforce authentication. A missing, invalid
    or expired token yields ``None`` (anonymous).
    """
    if not credentials:
        return None
    return await _load_profile(credentials.credentials, session)


async def get_current_profile(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(http_bearer)
    ] = None,
    session: AsyncSession = Depends(get_session),
) -> Profile:
    """Resolve the current authenticated profile.

    Raises:
        HTTPException: 401 if the request is unauthenticated, the token is
            invalid/expired, is not an access token, or the profile is gone.
    """
    if not credentials:
        raise _unauthorized("Not authenticated")

    payload = decode_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")
    # 确保使用的是 access token 而非 refresh token
    if payload.get("type") != TOKEN_TYPE_ACCESS:
        raise _unauthorized("Invalid token type")

    profile = await _load_profile(credentials.credentials, session)
    if profile is None:
        raise _unauthorized("Profile not found")
    return profile


async def get_caller(
    profile: Profile | None = Depends(get_optional_profile),
) -> CallerIdentity:
    """Build the explicit caller identity (anonymous when no valid token)."""
    if profile is None:
        return CallerIdentity.anonymous()
    return CallerIdentity(subject_id=profile.id, role=profile.role)


async def get_authenticated_caller(
    profile: Profile = Depends(get_current_profile),
) -> CallerIdentity:
    """Build the caller identity, requiring authentication."""
    return CallerIdentity(subject_id=profile.id, role=profile.role)


def require_capability(capability: Capability):
    """Create a dependency enforcing one capability at the routing layer.

    Used by endpoints that never reach a service method (e.g. static
    downloads); every service mutation performs the same check itself.

    Example:
        >>> @router.get("/import/template")
        ... async def template(caller = require_capability(Capability.REPORT_MANAGE)):
        ...     ...
    """

    async def capability_checker(
        caller: CallerIdentity = Depends(get_caller),
    ) -> CallerIdentity:
        decision = authorize(caller, capability)
        if decision.allowed:
            return caller
        if not caller.is_authenticated:
            raise _unauthorized("Not authenticated")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Missing required capability: {capability.value}",
        )

    return Depends(capability_checker)


# =============================================================================
# 类型别名定义
# =============================================================================
CurrentProfile = Annotated[Profile, Depends(get_current_profile)]
OptionalProfile = Annotated[Profile | None, Depends(get_optional_profile)]
Caller = Annotated[CallerIdentity, Depends(get_caller)]
AuthenticatedCaller = Annotated[CallerIdentity, Depends(get_authenticated_caller)]
