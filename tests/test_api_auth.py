"""Tests for login, tokens, profile and user administration endpoints."""

from conftest import API, TEST_PASSWORD

from refurb_ops.workflow.enums import Role


class TestLogin:
    async def test_login_returns_token_pair(self, client, make_user):
        user = await make_user(Role.QC_ENGINEER, email="qc@test.local")
        resp = await client.post(f"{API}/auth/login", data={"username": "QC@test.local", "password": TEST_PASSWORD})
        assert resp.status_code == 200, resp.text
        tokens = resp.json()
        assert tokens["token_type"] == "bearer"

        me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == str(user.id)

    async def test_wrong_password(self, client, make_user):
        await make_user(Role.QC_ENGINEER, email="qc@test.local")
        resp = await client.post(f"{API}/auth/login", data={"username": "qc@test.local", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid credentials"

    async def test_inactive_user_cannot_login(self, client, make_user):
        await make_user(Role.QC_ENGINEER, email="qc@test.local", active=False)
        resp = await client.post(f"{API}/auth/login", data={"username": "qc@test.local", "password": TEST_PASSWORD})
        assert resp.status_code == 401

    async def test_refresh(self, client, make_user):
        await make_user(Role.ADMIN, email="admin@test.local")
        login = await client.post(f"{API}/auth/login", data={"username": "admin@test.local", "password": TEST_PASSWORD})
        tokens = login.json()

        resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200
        assert resp.json()["access_token"]

        # An access token is not a refresh token.
        resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert resp.status_code == 401

    async def test_missing_token(self, client):
        resp = await client.get(f"{API}/auth/me")
        assert resp.status_code == 401


class TestProfile:
    async def test_access_lists_modules(self, client, login_as):
        _, headers = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        resp = await client.get(f"{API}/auth/me/access", headers=headers)
        assert resp.json() == {
            "code": "PAINT_SHOP_TECHNICIAN",
            "display_name": "Paint Shop Technician",
            "modules": ["dashboard", "paint"],
        }

    async def test_change_password_needs_current(self, client, login_as):
        _, headers = await login_as(Role.QC_ENGINEER)
        resp = await client.patch(f"{API}/auth/me", json={"new_password": "newsecret"}, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Current password is incorrect"

        resp = await client.patch(
            f"{API}/auth/me",
            json={"name": "Quinn", "current_password": TEST_PASSWORD, "new_password": "newsecret"},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Quinn"


class TestUserAdmin:
    async def test_only_superadmin(self, client, login_as):
        _, headers = await login_as(Role.ADMIN)
        resp = await client.get(f"{API}/admin/users", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error"]["type"] == "http_error"

    async def test_create_update_delete(self, client, login_as):
        _, headers = await login_as(Role.SUPERADMIN)
        resp = await client.post(
            f"{API}/admin/users",
            json={"email": "New.Tech@Test.local", "name": "Nia", "password": "secret1", "role": "L2_ENGINEER"},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        created = resp.json()
        assert created["email"] == "new.tech@test.local"

        dup = await client.post(
            f"{API}/admin/users",
            json={"email": "new.tech@test.local", "name": "Nia", "password": "secret1", "role": "L2_ENGINEER"},
            headers=headers,
        )
        assert dup.status_code == 409

        resp = await client.patch(f"{API}/admin/users/{created['id']}", json={"role": "L3_ENGINEER"}, headers=headers)
        assert resp.json()["role"] == "L3_ENGINEER"

        resp = await client.delete(f"{API}/admin/users/{created['id']}", headers=headers)
        assert resp.status_code == 204
        listed = await client.get(f"{API}/admin/users", headers=headers)
        assert created["id"] not in [u["id"] for u in listed.json()]

    async def test_invalid_new_user(self, client, login_as):
        _, headers = await login_as(Role.SUPERADMIN)
        resp = await client.post(
            f"{API}/admin/users",
            json={"email": "bad", "name": "N", "password": "1", "role": "JANITOR"},
            headers=headers,
        )
        assert resp.status_code == 400
        assert len(resp.json()["error"]["details"]["errors"]) == 4

    async def test_cannot_lock_self_out(self, client, login_as):
        me, headers = await login_as(Role.SUPERADMIN)
        resp = await client.delete(f"{API}/admin/users/{me.id}", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "You cannot delete your own account"

        resp = await client.patch(f"{API}/admin/users/{me.id}", json={"role": "ADMIN"}, headers=headers)
        assert resp.json()["error"]["message"] == "You cannot change your own role"


class TestRolesAndHealth:
    async def test_role_catalogue(self, client, login_as):
        _, headers = await login_as(Role.QC_ENGINEER)
        resp = await client.get(f"{API}/roles", headers=headers)
        roles = resp.json()
        assert len(roles) == 12
        assert roles[0]["modules"] == ["*"]

    async def test_health_and_correlation_id(self, client):
        resp = await client.get(f"{API}/health", headers={"X-Correlation-ID": "abc-123"})
        assert resp.json() == {"message": "Healthy"}
        assert resp.headers["X-Correlation-ID"] == "abc-123"

    async def test_error_envelope(self, client):
        resp = await client.get(f"{API}/does-not-exist")
        body = resp.json()
        assert resp.status_code == 404
        assert body["status"] == 404
        assert body["path"] == f"{API}/does-not-exist"
        assert body["method"] == "GET"
        assert body["correlation_id"] == resp.headers["X-Correlation-ID"]
