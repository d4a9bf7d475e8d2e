# =============================================================================
# 领域异常模块
# =============================================================================
# 本模块定义 ReportHub 数据访问层对外暴露的全部错误类型。
#
# 错误分类：
#   - StoreUnavailable : 数据库不可达或拒绝执行查询（包装 SQLAlchemyError）
#   - NotFoundError    : 更新/删除/计数操作的目标行不存在
#   - ValidationError  : 调用方输入违反前置条件，在访问数据库之前即被拒绝
#   - PermissionDenied : 调用方不具备执行该操作所需的能力（capability）
#
# 架构角色：
#   - service 层抛出这些异常，api 层不需要逐个捕获
#   - main.py 为每一类注册了统一的异常处理器，转换为对应的 HTTP 状态码
# =============================================================================

"""Domain exceptions for ReportHub."""

from __future__ import annotations


class ReportHubError(Exception):
    """Base class for all ReportHub domain errors."""

    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__


class StoreUnavailable(ReportHubError):
    """The backing store could not be reached or rejected the query."""

    status_code = 503


class NotFoundError(ReportHubError):
    """A write targeted a row that does not exist."""

    status_code = 404
    resource = "Resource"

    def __init__(self, identifier: str | None = None, message: str = "") -> None:
        self.identifier = identifier
        super().__init__(message or f"{self.resource} not found")


class ReportNotFound(NotFoundError):
    resource = "Report"


class CategoryNotFound(NotFoundError):
    resource = "Category"


class ProfileNotFound(NotFoundError):
    resource = "Profile"


class HomepageConfigNotFound(NotFoundError):
    resource = "Homepage config"


class ValidationError(ReportHubError):
    """Caller-supplied input violates a precondition.

    Raised before the store is touched. ``errors`` optionally carries
    per-field or per-row details.
    """

    status_code = 422

    def __init__(self, message: str = "", errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class PermissionDenied(ReportHubError):
    """The caller lacks the capability required by the operation."""

    status_code = 403

    def __init__(self, capability: str, authenticated: bool = True) -> None:
        self.capability = capability
        self.authenticated = authenticated
        super().__init__(f"Missing required capability: {capability}")
