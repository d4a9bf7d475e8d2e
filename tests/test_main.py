"""Tests for main.py — application entry point and configuration.

针对应用入口与配置的测试用例集合。
"""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient


class TestAppConfiguration:
    """Test FastAPI application configuration."""

    def test_app_title_and_version(self):
        from main import app

        assert app.title == "ReportHub"
        assert app.version == "1.0.0"

    def test_exception_handlers_configured(self):
        """Every domain error family maps to an HTTP response.

        验证领域异常与全局异常处理器均已注册。
        """
        from core.exceptions import (
            NotFoundError,
            PermissionDenied,
            StoreUnavailable,
            ValidationError,
        )
        from main import app

        for exc_class in (
            Exception,
            NotFoundError,
            PermissionDenied,
            StoreUnavailable,
            ValidationError,
        ):
            assert exc_class in app.exception_handlers

    def test_cors_middleware_present(self):
        from main import app

        names = [m.cls.__name__ for m in app.user_middleware]
        assert "CORSMiddleware" in names


class TestRouterRegistration:
    """Test that every router is mounted under the API prefix."""

    def test_routes_registered(self):
        from main import app

        paths = {route.path for route in app.routes}
        for path in (
            "/api/v1/auth/login",
            "/api/v1/admin/stats",
            "/api/v1/reports",
            "/api/v1/reports/{report_id}/download",
            "/api/v1/categories",
            "/api/v1/downloads/users/{user_id}",
            "/api/v1/profiles/me",
            "/api/v1/homepage",
            "/health",
            "/health/live",
            "/health/ready",
        ):
            assert path in paths, path


class TestErrorMapping:
    """Domain errors raised in handlers become JSON error responses.

    异常处理器把领域异常转换为对应的状态码。
    """

    def _client(self) -> TestClient:
        from fastapi import FastAPI

        from core.exceptions import PermissionDenied, ReportNotFound, StoreUnavailable
        from main import app

        probe = FastAPI()
        for exc_class, handler in app.exception_handlers.items():
            probe.add_exception_handler(exc_class, handler)

        @probe.get("/missing")
        async def missing():
            raise ReportNotFound("r-1")

        @probe.get("/down")
        async def down():
            raise StoreUnavailable("Database unavailable")

        @probe.get("/anon")
        async def anon():
            raise PermissionDenied("report:manage", authenticated=False)

        @probe.get("/forbidden")
        async def forbidden():
            raise PermissionDenied("report:manage", authenticated=True)

        return TestClient(probe, raise_server_exceptions=False)

    def test_not_found(self):
        response = self._client().get("/missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"detail": "Report not found"}

    def test_store_unavailable(self):
        response = self._client().get("/down")
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_permission_denied_depends_on_authentication(self):
        client = self._client()
        response = client.get("/anon")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"
        assert client.get("/forbidden").status_code == status.HTTP_403_FORBIDDEN


class TestHealth:
    """Liveness does not touch the database."""

    def test_liveness(self, client: TestClient):
        response = client.get("/health/live")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "alive"}
