"""Shared test fixtures for ReportHub tests."""

from __future__ import annotations

import os
import sys
from typing import AsyncGenerator, Generator

# 必须在导入 settings 之前设置，确保全局引擎也指向内存数据库
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-reporthub")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure the project root is on sys.path so bare imports work
_PROJECT_ROOT = os.path.join(os.path.dirname(__file__), os.pardir)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, os.path.abspath(_PROJECT_ROOT))

# Use in-memory SQLite for tests (faster, no external dependencies)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
API = "/api/v1"


def _make_engine():
    from core.database import enable_sqlite_savepoints

    # StaticPool: every connection shares the same in-memory database
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    return enable_sqlite_savepoints(engine)


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database with every table.

    每个测试使用独立的内存数据库，测试结束后释放。
    """
    from apps import load_models
    from core.models.base import Base

    load_models()
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session per test.

    为每个测试提供数据库会话，未提交的修改在结束时回滚。
    """
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def admin_caller():
    """Caller identity holding the admin role."""
    from common.utils import new_id
    from core.permissions import CallerIdentity

    return CallerIdentity(subject_id=new_id(), role="admin")


@pytest.fixture
def user_caller():
    """Caller identity holding the plain user role."""
    from common.utils import new_id
    from core.permissions import CallerIdentity

    return CallerIdentity(subject_id=new_id(), role="user")


@pytest.fixture
def anonymous_caller():
    from core.permissions import CallerIdentity

    return CallerIdentity.anonymous()


@pytest_asyncio.fixture
async def category(db_session: AsyncSession, admin_caller):
    """A committed category named ``Macro``."""
    from apps.category.schemas import CategoryCreate
    from apps.category.service import CategoryService

    created = await CategoryService().create_category(
        db_session, admin_caller, CategoryCreate(name="Macro", description="宏观研究")
    )
    await db_session.commit()
    return created


@pytest.fixture
def test_user_data() -> dict:
    """Provide a default test user payload."""
    return {
        "username": "testuser",
        "email": "test@example.com",
        "password": "password123",
    }


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client with DB overrides.

    构建测试客户端并覆盖数据库依赖，不触发应用的生命周期事件。
    """
    from fastapi import Depends, FastAPI

    from apps import load_models
    from core.database import get_session
    from core.models.base import Base
    from core.models.profile import Profile
    from main import app

    load_models()
    engine = _make_engine()
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    _created = False

    async def override_get_session():
        nonlocal _created

        if not _created:
            # 第一次请求时建表，保证与请求在同一个事件循环中
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            _created = True

        async with session_factory() as session:
            try:
                yield session
                # 每个请求结束后提交，使后续请求能看到修改
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    test_app = FastAPI(title=app.title)

    # Copy middleware
    for middleware in app.user_middleware:
        test_app.user_middleware.append(middleware)

    # Copy exception handlers
    for exc_class, handler in app.exception_handlers.items():
        test_app.add_exception_handler(exc_class, handler)

    # Copy routes
    for route in app.routes:
        test_app.routes.append(route)

    # ----- Test-only utility endpoint for changing a profile's role -----
    @test_app.post("/_test/set-role")
    async def _test_set_role(
        payload: dict,
        session: AsyncSession = Depends(get_session),
    ):
        await session.execute(
            update(Profile)
            .where(Profile.username == payload["username"])
            .values(role=payload["role"])
        )
        return {"ok": True}

    app.dependency_overrides[get_session] = override_get_session
    test_app.dependency_overrides[get_session] = override_get_session

    with TestClient(test_app, raise_server_exceptions=False) as test_client:
        # 先触发一次请求完成建表
        test_client.get(f"{API}/categories")
        yield test_client

    app.dependency_overrides.clear()
    test_app.dependency_overrides.clear()


def _register_and_login(
    client: TestClient, username: str, email: str, password: str
) -> str:
    """Register a profile via the API and return an access token."""
    reg_resp = client.post(
        f"{API}/auth/register",
        json={"username": username, "email": email, "password": password},
    )
    if reg_resp.status_code not in (200, 201):
        raise RuntimeError(
            f"Registration failed for {username}: "
            f"status={reg_resp.status_code} {reg_resp.text}"
        )

    login_resp = client.post(
        f"{API}/auth/login",
        json={"username": username, "password": password},
    )
    data = login_resp.json()
    if "access_token" not in data:
        raise RuntimeError(
            f"Login failed for {username}: "
            f"login={login_resp.status_code} {login_resp.text}"
        )
    return data["access_token"]


@pytest.fixture
def auth_headers(client: TestClient, test_user_data: dict) -> dict:
    """Authorization headers for a plain ``user`` profile."""
    token = _register_and_login(
        client,
        test_user_data["username"],
        test_user_data["email"],
        test_user_data["password"],
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client: TestClient) -> dict:
    """Authorization headers for an ``admin`` profile.

    注册用户后通过测试端点把角色改为 admin。角色在每次请求时从数据库读取，
    因此先登录后改角色同样生效。
    """
    token = _register_and_login(
        client, "adminuser", "admin@example.com", "password123"
    )
    client.post("/_test/set-role", json={"username": "adminuser", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
