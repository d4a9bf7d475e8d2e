# =============================================================================
# 能力（Capability）与授权检查模块
# =============================================================================
# 本模块是 ReportHub 唯一的授权判断入口。
#   1. CallerIdentity：调用方身份（subject + role），显式传入每个数据访问调用
#   2. Capability：预定义的细粒度操作能力，命名格式为 "资源:操作"
#   3. ROLE_CAPABILITIES：角色到能力集合的映射表
#   4. authorize()：返回能力判定结果 AccessDecision（不抛异常）
#   5. ensure_allowed()：判定失败时抛出 PermissionDenied，供 service 层调用
#
# 数据流：
#   bearer token --> core/dependencies.py --> CallerIdentity
#   service 方法 --> ensure_allowed(caller, Capability.X) --> 继续 / PermissionDenied
#
# 设计说明：
#   - 所有变更类操作（研报、分类、用户角色、首页配置）都在 service 层检查能力，
#     路由层不再分散地编写 admin 判断
#   - 匿名调用方使用 CallerIdentity.anonymous()，没有任何能力
# =============================================================================

"""Capability table and the central authorization check for ReportHub."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from core.exceptions import PermissionDenied
from core.models.profile import ROLE_ADMIN, ROLE_USER


class Capability(str, Enum):
    """Named capabilities, ``resource:action``."""

    REPORT_MANAGE = "report:manage"
    CATEGORY_MANAGE = "category:manage"
    USER_MANAGE = "user:manage"
    HOMEPAGE_MANAGE = "homepage:manage"
    STATS_READ = "stats:read"
    DOWNLOAD_AUDIT = "download:audit"
    # 查看自己的下载记录、编辑自己的资料
    PROFILE_SELF = "profile:self"


# 角色 -> 能力集合
# admin 拥有全部能力；user 仅能管理自己的资料与下载记录
ROLE_CAPABILITIES: dict[str, frozenset[Capability]] = {
    ROLE_ADMIN: frozenset(Capability),
    ROLE_USER: frozenset({Capability.PROFILE_SELF}),
}


@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling a data-access operation.

    Attributes:
        subject_id: Profile id from the identity provider, ``None`` if anonymous.
        role: Profile role, ``None`` if anonymous.
    """

    subject_id: str | None = None
    role: str | None = None

    @classmethod
    def anonymous(cls) -> "CallerIdentity":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.subject_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of :func:`authorize`."""

    allowed: bool
    capability: Capability
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


def capabilities_for(role: str | None) -> frozenset[Capability]:
    """Return the capability set granted to ``role`` (empty for unknown roles)."""
    if role is None:
        return frozenset()
    return ROLE_CAPABILITIES.get(role, frozenset())


def authorize(caller: CallerIdentity, capability: Capability) -> AccessDecision:
    """Decide whether ``caller`` holds ``capability``.

    Args:
        caller: Explicit caller identity.
        capability: Capability required by the operation.

    Returns:
        AccessDecision: ``allowed`` plus a short reason when denied.
    """
    if not caller.is_authenticated:
        return AccessDecision(False, capability, "anonymous")
    if capability in capabilities_for(caller.role):
        return AccessDecision(True, capability)
    return AccessDecision(False, capability, f"role '{caller.role}' lacks capability")


def ensure_allowed(caller: CallerIdentity, capability: Capability) -> None:
    """Raise :class:`PermissionDenied` unless ``caller`` holds ``capability``."""
    decision = authorize(caller, capability)
    if not decision.allowed:
        raise PermissionDenied(
            capability.value,
            authenticated=caller.is_authenticated,
        )
