# =============================================================================
# 数据库连接与会话管理模块
# =============================================================================
# 本模块负责 ReportHub 的数据库连接管理，是整个数据访问层的基础。
# 主要职责：
#   1. 创建和管理 SQLAlchemy 异步数据库引擎（AsyncEngine）
#   2. 提供异步会话工厂（async_sessionmaker），用于生成数据库会话
#   3. 提供数据库会话的生命周期管理（含自动提交和回滚机制）
#   4. 提供数据库初始化（建表）和关闭（释放连接池）功能
#   5. 提供数据库健康检查功能
#   6. 将底层 SQLAlchemyError 统一转换为领域异常 StoreUnavailable
#
# 架构设计说明：
#   - 使用模块级全局变量（_engine、_session_factory）实现单例模式，
#     确保整个应用共享同一连接池。
#   - 延迟导入 settings 模块，避免循环依赖问题。
#   - get_session() 作为 FastAPI 的 Depends 依赖注入函数使用，
#     一个请求内的所有写操作处于同一事务中，成功则提交，异常则回滚。
# =============================================================================

"""Database connection and session management for ReportHub."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.exceptions import StoreUnavailable
from core.models.base import Base

logger = logging.getLogger(__name__)

# 模块级全局变量：数据库引擎实例（单例模式）
_engine: AsyncEngine | None = None

# 模块级全局变量：异步会话工厂实例（单例模式）
_session_factory: async_sessionmaker[AsyncSession] | None = None


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """Let SQLAlchemy own BEGIN on pysqlite/aiosqlite connections.

    The sqlite3 driver defers BEGIN until the first DML statement, so a
    SAVEPOINT opened first is released as its own transaction. Disabling the
    driver's transaction handling and emitting BEGIN from the ``begin`` event
    keeps ``begin_nested()`` inside the session transaction.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_engine() -> AsyncEngine:
    """Get or create the async database engine.

    This function lazily constructs a singleton SQLAlchemy ``AsyncEngine``
    using configuration values from ``settings``. Subsequent calls return the
    same engine instance so the application shares a single connection pool.

    Returns:
        AsyncEngine: A shared asynchronous engine bound to ``settings.database_url``.
    """
    global _engine
    if _engine is None:
        # 延迟导入 settings，避免模块加载时的循环依赖
        from settings import settings

        if settings.is_sqlite:
            # SQLite 不支持连接池参数，仅用于本地开发和测试
            _engine = create_async_engine(
                settings.database_url,
                echo=settings.db_echo,
                connect_args={"check_same_thread": False},
            )
            enable_sqlite_savepoints(_engine)
        else:
            # pool_recycle 防止数据库服务端 wait_timeout 导致连接被断开
            _engine = create_async_engine(
                settings.database_url,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=settings.db_pool_recycle,
                pool_pre_ping=True,
                echo=settings.db_echo,
            )
        logger.info("Database engine created")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory.

    The returned factory is configured with ``expire_on_commit=False`` to
    avoid implicit lazy-loading after ``await`` boundaries.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for FastAPI dependencies.

    Commits on success and rolls back on exception, so every request is one
    transaction. A failing commit is reported as ``StoreUnavailable``.

    Yields:
        AsyncSession: An active async SQLAlchemy session.
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            async with store_errors("commit"):
                await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """Translate SQLAlchemy failures raised inside the block.

    数据访问层中所有对数据库的调用都包裹在此上下文中，
    任何 SQLAlchemyError 都会被记录并以 StoreUnavailable 的形式重新抛出，
    原始异常保留在 ``__cause__`` 中。

    Args:
        operation: Short label of the failing operation, used in logs.

    Raises:
        StoreUnavailable: If the wrapped block raises ``SQLAlchemyError``.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Store failure during {operation}: {e}")
        raise StoreUnavailable(f"Store unavailable during {operation}") from e


async def init_db() -> None:
    """Initialize database schema.

    Creates all tables registered on ``Base.metadata`` if they do not already
    exist. Production deployments should prefer the Alembic migrations.
    """
    # 导入所有模型，确保它们注册到 Base.metadata
    from apps import load_models

    load_models()
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified")


async def close_db() -> None:
    """Dispose the database engine and clear session factory."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connections closed")


async def check_db_connection() -> bool:
    """Check whether the database connection is healthy.

    Executes a lightweight ``SELECT 1`` query using a fresh connection.

    Returns:
        bool: ``True`` if the query succeeds, otherwise ``False``.
    """
    try:
        from sqlalchemy import text
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        # 健康检查只返回布尔值，由调用方决定如何处理（如返回 503）
        logger.error(f"Database connection check failed: {e}")
        return False
