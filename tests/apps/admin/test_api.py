"""Tests for apps/admin/api.py — dashboard and user management endpoints.

管理后台接口测试：统计数据、用户列表与角色修改。

Run with: pytest tests/apps/admin/test_api.py -v
"""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

API = "/api/v1"


class TestAdminRouterConfig:
    """Verify router prefix and registered routes."""

    def test_router_prefix_and_routes(self):
        from apps.admin.api import router

        assert router.prefix == "/admin"
        paths = {route.path for route in router.routes}
        assert {"/admin/stats", "/admin/users", "/admin/users/{user_id}/role"} <= paths


class TestAdminStatsEndpoint:
    """Test GET /admin/stats.

    匿名 401，普通用户 403，管理员返回四项统计。
    """

    def test_stats_requires_auth(self, client: TestClient):
        response = client.get(f"{API}/admin/stats")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_stats_forbidden_for_user(self, client: TestClient, auth_headers: dict):
        response = client.get(f"{API}/admin/stats", headers=auth_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_stats_structure(self, client: TestClient, admin_headers: dict):
        client.post(
            f"{API}/reports",
            json={"title": "Seen", "pdf_url": "https://example.com/s.pdf"},
            headers=admin_headers,
        )
        response = client.get(f"{API}/admin/stats", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "total_reports": 1,
            "total_downloads": 0,
            "total_users": 1,
            "total_views": 0,
        }


class TestAdminUserManagement:
    """Test user listing and role changes."""

    def test_list_users_forbidden_for_user(self, client: TestClient, auth_headers: dict):
        response = client.get(f"{API}/admin/users", headers=auth_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_and_promote(
        self, client: TestClient, admin_headers: dict, auth_headers: dict
    ):
        data = client.get(
            f"{API}/admin/users", params={"search": "testuser"}, headers=admin_headers
        ).json()
        assert data["total"] == 1
        user_id = data["profiles"][0]["id"]

        response = client.put(
            f"{API}/admin/users/{user_id}/role",
            json={"role": "admin"},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["profile"]["role"] == "admin"

        # 角色在每次请求时重新读取，原令牌立即获得管理员能力
        response = client.get(f"{API}/admin/stats", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK

    def test_invalid_role_is_422(self, client: TestClient, admin_headers: dict):
        me = client.get(f"{API}/auth/me", headers=admin_headers).json()
        response = client.put(
            f"{API}/admin/users/{me['id']}/role",
            json={"role": "root"},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_unknown_user_is_404(self, client: TestClient, admin_headers: dict):
        response = client.put(
            f"{API}/admin/users/00000000-0000-0000-0000-000000000000/role",
            json={"role": "user"},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
