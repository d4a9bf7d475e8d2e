"""Tests for core/dependencies.py — FastAPI dependency injection.

依赖注入相关测试。
"""

from __future__ import annotations

from fastapi import Depends, FastAPI, status
from fastapi.testclient import TestClient


async def _no_session():
    # 这些用例在访问数据库之前就已返回
    yield None


def _app_with(dependency) -> TestClient:
    from core.database import get_session

    app = FastAPI()

    @app.get("/test")
    async def test_endpoint(value=Depends(dependency)):
        if value is None:
            return {"value": None}
        if hasattr(value, "subject_id"):
            return {"subject": value.subject_id, "role": value.role}
        return {"value": str(value)}

    app.dependency_overrides[get_session] = _no_session
    return TestClient(app)


class TestOptionalProfile:
    """Test get_optional_profile / get_caller for anonymous requests.

    验证未携带或携带无效令牌时视为匿名调用方。
    """

    def test_no_credentials_returns_none(self):
        from core.dependencies import get_optional_profile

        response = _app_with(get_optional_profile).get("/test")
        assert response.status_code == 200
        assert response.json()["value"] is None

    def test_invalid_token_returns_none(self):
        from core.dependencies import get_optional_profile

        response = _app_with(get_optional_profile).get(
            "/test", headers={"Authorization": "Bearer invalid.token.here"}
        )
        assert response.status_code == 200
        assert response.json()["value"] is None

    def test_refresh_token_is_not_a_caller(self):
        """A refresh token never authenticates a data request."""
        from core.dependencies import get_caller
        from core.security import create_refresh_token

        token = create_refresh_token({"sub": "profile-1"})
        response = _app_with(get_caller).get(
            "/test", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 200
        assert response.json() == {"subject": None, "role": None}


class TestCurrentProfile:
    """Test get_current_profile rejects unauthenticated requests."""

    def test_missing_token_is_401(self):
        from core.dependencies import get_current_profile

        response = _app_with(get_current_profile).get("/test")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"

    def test_expired_token_is_401(self):
        from datetime import timedelta

        from core.dependencies import get_current_profile
        from core.security import create_access_token

        token = create_access_token(
            {"sub": "profile-1"}, expires_delta=timedelta(seconds=-5)
        )
        response = _app_with(get_current_profile).get(
            "/test", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid or expired token"

    def test_refresh_token_is_401(self):
        from core.dependencies import get_current_profile
        from core.security import create_refresh_token

        token = create_refresh_token({"sub": "profile-1"})
        response = _app_with(get_current_profile).get(
            "/test", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid token type"


class TestRequireCapability:
    """Test the require_capability dependency factory.

    验证能力检查依赖：匿名 401，缺少能力 403，满足则放行。
    """

    def _client(self, caller):
        from core.dependencies import get_caller, require_capability
        from core.permissions import Capability

        app = FastAPI()

        @app.get("/guarded")
        async def guarded(c=require_capability(Capability.REPORT_MANAGE)):
            return {"subject": c.subject_id}

        async def fixed_caller():
            return caller

        app.dependency_overrides[get_caller] = fixed_caller
        return TestClient(app)

    def test_anonymous_is_401(self, anonymous_caller):
        response = self._client(anonymous_caller).get("/guarded")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_user_is_403(self, user_caller):
        response = self._client(user_caller).get("/guarded")
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert "report:manage" in response.json()["detail"]

    def test_admin_passes(self, admin_caller):
        response = self._client(admin_caller).get("/guarded")
        assert response.status_code == 200
        assert response.json()["subject"] == admin_caller.subject_id


class TestTypeAliases:
    """Verify the Annotated aliases used by the routers exist."""

    def test_type_aliases_exist(self):
        from core import dependencies

        for name in ("CurrentProfile", "OptionalProfile", "Caller", "AuthenticatedCaller"):
            assert hasattr(dependencies, name)
