# =============================================================================
# 模块: main.py
# 功能: ReportHub 应用程序的主入口文件
# 架构角色: 作为整个 FastAPI 应用的启动和编排中心，负责：
#   1. 初始化日志系统
#   2. 管理应用生命周期（启动/关闭）
#   3. 注册所有路由（认证、研报、分类、下载记录、用户资料、首页、管理）
#   4. 配置中间件（CORS 跨域）
#   5. 将领域异常统一转换为 HTTP 响应
#   6. 初始化数据库默认数据（管理员账户、首页配置）
# =============================================================================
"""Main application entry point for ReportHub."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# 数据库相关：初始化、关闭、连接检查
from core.database import init_db, close_db, check_db_connection
# 领域异常
from core.exceptions import (
    NotFoundError,
    PermissionDenied,
    ReportHubError,
    StoreUnavailable,
    ValidationError,
)
# 认证模块：路由和认证服务
from apps.auth import router as auth_router, AuthService
from apps.admin.api import router as admin_router
from apps.category.api import router as category_router
from apps.download.api import router as download_router
from apps.homepage.api import router as homepage_router
from apps.homepage.service import HomepageService
from apps.profile.api import router as profile_router
from apps.report.api import router as report_router
# 日志系统初始化
from common.logger import setup_logging
# 全局配置单例
from settings import settings

# 初始化日志系统，根据 settings.debug 决定日志级别
setup_logging("DEBUG" if settings.debug else "INFO", None)
logger = logging.getLogger(__name__)


# 使用 asynccontextmanager 装饰器定义应用的生命周期管理器
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # ======================== 启动阶段 ========================
    logger.info(f"Starting {settings.app_name}...")

    # 第一步：检查数据库连接是否可用
    if not await check_db_connection():
        logger.error("Database connection failed")
        raise RuntimeError("Cannot connect to database")

    # 第二步：初始化数据库表结构（创建尚不存在的表）
    await init_db()
    logger.info("Database initialized")

    # 第三步：初始化默认数据（管理员账户、首页配置）
    await init_default_data()

    logger.info(f"{settings.app_name} started successfully")

    yield

    # ======================== 关闭阶段 ========================
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info(f"{settings.app_name} shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Research report catalog and download service",
    version="1.0.0",
    lifespan=lifespan,
)

# 添加 CORS（跨域资源共享）中间件
# 注意: allow_origins=["*"] 时不应启用 allow_credentials=True
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# 异常处理器
# service 层抛出的领域异常在这里统一转换为 HTTP 状态码
# =============================================================================
def _error_response(exc: ReportHubError, **extra) -> JSONResponse:
    content = {"detail": exc.message}
    content.update(extra)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    # 原始 SQLAlchemyError 已在 store_errors() 中记录
    return _error_response(exc)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(exc)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error_response(exc, errors=exc.errors)


@app.exception_handler(PermissionDenied)
async def permission_denied_handler(request: Request, exc: PermissionDenied):
    # 匿名调用方返回 401，提示客户端先登录
    if not exc.authenticated:
        return JSONResponse(
            status_code=401,
            content={"detail": "Not authenticated"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    logger.warning(f"Permission denied on {request.url.path}: {exc.capability}")
    return _error_response(exc)


# 全局异常处理器
# 捕获所有未处理的异常，防止敏感错误信息泄露给客户端
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# =============================================================================
# 路由注册
# 所有业务接口统一挂载到 settings.api_prefix（默认 /api/v1）下
# =============================================================================
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(admin_router, prefix=settings.api_prefix)
app.include_router(report_router, prefix=f"{settings.api_prefix}/reports")
app.include_router(category_router, prefix=f"{settings.api_prefix}/categories")
app.include_router(download_router, prefix=f"{settings.api_prefix}/downloads")
app.include_router(profile_router, prefix=f"{settings.api_prefix}/profiles")
app.include_router(homepage_router, prefix=f"{settings.api_prefix}/homepage")


# 健康检查端点
# 用于容器编排（如 Kubernetes）和负载均衡器的健康探测
@app.get("/health")
async def health_check():
    """Health check endpoint with component status.

    Returns:
        Dict[str, Any]: Overall status and database connectivity.
    """
    db_ok = await check_db_connection()
    return {
        "status": "healthy" if db_ok else "unhealthy",
        "components": {
            "database": "connected" if db_ok else "disconnected",
        },
    }


@app.get("/health/live")
async def liveness_check():
    """Liveness probe: the process is up."""
    return {"status": "alive"}


@app.get("/health/ready")
async def readiness_check():
    """Readiness probe: the database must be reachable.

    Raises:
        HTTPException: 503 when the database is not reachable.
    """
    if not await check_db_connection():
        raise HTTPException(status_code=503, detail="Database not ready")
    return {"status": "ready"}


async def init_default_data():
    """Create the bootstrap admin and the default homepage config."""
    # 该函数在应用启动时调用，只插入不存在的数据，不会覆盖已有数据
    from core.database import get_session_factory

    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            # 仅在配置了 admin_password 时才创建管理员
            if settings.admin_password:
                admin = await AuthService.ensure_admin(
                    session,
                    username=settings.admin_username,
                    password=settings.admin_password,
                    email=settings.admin_email or None,
                )
                if admin:
                    logger.info(f"Admin created: {settings.admin_username}")

            await HomepageService().ensure_default_config(session)

            await session.commit()
        except Exception:
            # 出现任何异常时回滚事务，保持数据一致性
            await session.rollback()
            raise


def run() -> None:
    """Entry point for ``reporthub`` console script (see pyproject.toml)."""
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Run ReportHub server")
    parser.add_argument("--host", type=str, default=None, help="Host to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    # 优先使用命令行参数，其次使用 settings 配置
    host = args.host or settings.app_host
    port = args.port or settings.app_port
    reload = args.reload or settings.debug

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
    )


# 直接运行本文件时的入口
if __name__ == "__main__":
    run()
