# =============================================================================
# 模块: settings.py
# 功能: ReportHub 的全局应用配置模块
# 架构角色: 作为整个应用的配置中枢，提供统一的配置管理。
#   采用分层配置优先级机制，从高到低依次为：
#   1. 环境变量（运行时覆盖，适用于容器化部署）
#   2. .env 文件（存放敏感信息如密码、JWT 密钥）
#   3. config/defaults.yaml（非敏感默认值）
#   4. Python 代码中的硬编码默认值（兜底方案）
#
# 设计决策:
#   - 使用 pydantic-settings 的 BaseSettings 实现类型安全的配置
#   - YAML 文件在模块加载时一次性读取并缓存到模块级变量中
#   - validation_alias 用于将大写的环境变量名映射到小写的 Python 属性名
#   - 敏感信息（数据库密码、JWT 密钥、管理员密码）不在 YAML 中设默认值
# =============================================================================
"""Global application settings for ReportHub.

Configuration precedence (highest to lowest):
1. Environment variables (runtime override)
2. .env file (secrets)
3. config/defaults.yaml (non-sensitive defaults)
4. Hardcoded Python defaults (fallback)
"""

from __future__ import annotations

import secrets
from pathlib import Path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 项目根目录（settings.py 所在目录）
BASE_DIR = Path(__file__).resolve().parent
# 配置文件目录
CONFIG_DIR = BASE_DIR / "config"


def load_yaml_config() -> dict:
    """Load configuration from defaults.yaml.

    从 YAML 配置文件加载默认配置。文件不存在时返回空字典。
    """
    config_path = CONFIG_DIR / "defaults.yaml"
    if not config_path.exists():
        return {}
    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


# 模块加载时一次性读取 YAML 配置并缓存
_yaml_config = load_yaml_config()
_app_config = _yaml_config.get("app", {})            # 应用基本配置
_db_config = _yaml_config.get("database", {})         # 数据库配置
_jwt_config = _yaml_config.get("jwt", {})             # JWT 认证配置
_catalog_config = _yaml_config.get("catalog", {})     # 研报目录配置


class Settings(BaseSettings):
    """Global application settings."""

    # ======================== 应用基本配置 ========================
    app_name: str = Field(
        default=_app_config.get("name", "ReportHub"),
        validation_alias="APP_NAME",
    )
    debug: bool = Field(
        default=_app_config.get("debug", False),
        validation_alias="DEBUG",
    )
    app_host: str = Field(
        default=_app_config.get("host", "0.0.0.0"),
        validation_alias="APP_HOST",
    )
    app_port: int = Field(
        default=_app_config.get("port", 8000),
        validation_alias="APP_PORT",
    )
    # 所有 JSON API 的挂载前缀
    api_prefix: str = Field(
        default=_app_config.get("api_prefix", "/api/v1"),
        validation_alias="API_PREFIX",
    )
    # CORS 允许的来源，逗号分隔；"*" 表示全部（仅建议开发环境使用）
    cors_origins: str = Field(
        default=_app_config.get("cors_origins", "*"),
        validation_alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(
        default=_app_config.get("cors_allow_credentials", False),
        validation_alias="CORS_ALLOW_CREDENTIALS",
    )

    # ======================== 数据库配置 ========================
    # 完整连接串优先；为空时根据 db_* 字段拼接 MySQL (aiomysql) 连接串
    database_url_override: str = Field(
        default="",
        validation_alias="DATABASE_URL",
    )
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=3306, validation_alias="DB_PORT")
    db_name: str = Field(default="report_hub", validation_alias="DB_NAME")
    db_user: str = Field(default="report_hub", validation_alias="DB_USER")
    # 数据库密码默认为空，必须通过环境变量或 .env 文件提供
    db_password: str = Field(default="", validation_alias="DB_PASSWORD")
    db_pool_size: int = Field(
        default=_db_config.get("pool_size", 10),
        validation_alias="DB_POOL_SIZE",
    )
    db_max_overflow: int = Field(
        default=_db_config.get("max_overflow", 20),
        validation_alias="DB_MAX_OVERFLOW",
    )
    db_pool_recycle: int = Field(
        default=_db_config.get("pool_recycle", 3600),
        validation_alias="DB_POOL_RECYCLE",
    )
    db_echo: bool = Field(
        default=_db_config.get("echo", False),
        validation_alias="DB_ECHO",
    )

    # ======================== JWT 认证配置 ========================
    # JWT 密钥：为空时自动生成随机密钥（见下方 validator）
    jwt_secret_key: str = Field(default="", validation_alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(
        default=_jwt_config.get("algorithm", "HS256"),
        validation_alias="JWT_ALGORITHM",
    )
    jwt_access_token_expire_minutes: int = Field(
        default=_jwt_config.get("access_token_expire_minutes", 1440),
        validation_alias="JWT_ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    jwt_refresh_token_expire_days: int = Field(
        default=_jwt_config.get("refresh_token_expire_days", 7),
        validation_alias="JWT_REFRESH_TOKEN_EXPIRE_DAYS",
    )

    # ======================== 初始管理员 ========================
    # 仅在配置了密码时，启动阶段才会创建该管理员账号
    admin_username: str = Field(default="admin", validation_alias="ADMIN_USERNAME")
    admin_email: str = Field(default="", validation_alias="ADMIN_EMAIL")
    admin_password: str = Field(default="", validation_alias="ADMIN_PASSWORD")

    # ======================== 研报目录配置 ========================
    default_page_size: int = Field(
        default=_catalog_config.get("default_page_size", 10),
        validation_alias="DEFAULT_PAGE_SIZE",
    )
    max_page_size: int = Field(
        default=_catalog_config.get("max_page_size", 100),
        validation_alias="MAX_PAGE_SIZE",
    )
    # 计数器回退路径（CAS 循环）的最大尝试次数
    counter_cas_max_attempts: int = Field(
        default=_catalog_config.get("counter_cas_max_attempts", 5),
        validation_alias="COUNTER_CAS_MAX_ATTEMPTS",
    )
    # 单次 Excel 导入允许的最大行数
    import_max_rows: int = Field(
        default=_catalog_config.get("import_max_rows", 1000),
        validation_alias="IMPORT_MAX_ROWS",
    )

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def generate_jwt_secret_if_empty(cls, v: str) -> str:
        """Generate a random JWT secret if not provided.

        自动生成的密钥在每次重启时都会变化，之前签发的令牌随之失效。
        生产环境应通过环境变量设置固定密钥。
        """
        if not v or v == "your_jwt_secret_key_here":
            return secrets.token_urlsafe(32)
        return v

    @property
    def database_url(self) -> str:
        """Build the async database URL.

        若设置了 DATABASE_URL 则直接使用，否则拼接 aiomysql 连接串，
        密码经过 URL 编码以处理特殊字符。
        """
        if self.database_url_override:
            return self.database_url_override
        from urllib.parse import quote_plus
        encoded_password = quote_plus(self.db_password)
        return (
            f"mysql+aiomysql://{self.db_user}:{encoded_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins_list(self) -> list[str]:
        """Return CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# 创建全局配置单例
# 整个应用通过 from settings import settings 引用此实例
settings = Settings()
