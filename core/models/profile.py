# =============================================================================
# 用户资料模型模块
# =============================================================================
# 本模块定义了 ReportHub 的用户资料模型（Profile）。
# 主要职责：
#   1. 定义 profiles 表的 ORM 映射，包括用户名、邮箱、角色和认证信息
#   2. 提供密码设置、验证等身份相关的业务方法
#
# 架构角色：
#   - Profile.id 即身份令牌中的 subject（"sub" 声明），
#     研报的 created_by 与下载记录的 user_id 都弱引用该字段
#   - role 字段只有两个取值：user（默认）与 admin，
#     能力判断统一由 core/permissions.py 负责
#
# 设计决策：
#   - 继承 TimestampMixin 自动管理 created_at 和 updated_at 字段
#   - username 建立唯一索引；email 可为空
#   - 密码存储为哈希值，原始密码永远不会被存储，也不会被序列化输出
#   - 本系统从不删除 Profile
# =============================================================================

"""Profile model for ReportHub."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import Base, IdMixin, TimestampMixin

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class Profile(Base, IdMixin, TimestampMixin):
    """Account record of a ReportHub user.

    Attributes:
        id: Identity subject; opaque string.
        username: Unique username matching ``[A-Za-z0-9_]+``.
        email: Optional email address.
        role: ``user`` or ``admin``.
        password_hash: Hashed credential used by the identity provider.
    """

    __tablename__ = "profiles"

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=ROLE_USER,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, username={self.username}, role={self.role})>"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def set_password(self, password: str) -> None:
        """Set the profile's password hash.

        Args:
            password: Plaintext password.
        """
        # 延迟导入 security 模块，避免循环依赖
        from core.security import hash_password

        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        """Check whether a plaintext password matches the stored hash."""
        from core.security import verify_password

        return verify_password(password, self.password_hash)
