"""认证接口的集成测试用例。"""

from fastapi.testclient import TestClient


def test_login_success(client: TestClient):
    """登录流程：正确凭证应返回访问令牌。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": "admin", "password": "admin123"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["code"] == 200
    assert payload["data"]["token_type"] == "bearer"
    assert payload["data"]["access_token"]


def test_login_invalid_credentials(client: TestClient):
    """登录流程：错误密码应提示认证失败。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": "admin", "password": "wrongpassword"},
    )
    assert response.status_code == 401
    payload = response.json()
    assert payload["code"] == 401
    assert payload["msg"] == "用户名或密码错误"


def test_logout_revokes_token(client: TestClient, login, default_team):
    """退出登录后，原令牌立即失效。"""
    headers = login()
    trash_url = f"/api/v1/teams/{default_team.id}/datarooms"

    created = client.post(trash_url, headers=headers, json={"name": "退出前创建"})
    assert created.status_code == 201

    logout = client.post("/api/v1/auth/logout", headers=headers)
    assert logout.status_code == 200
    assert logout.json()["msg"] == "退出登录成功"

    rejected = client.post(trash_url, headers=headers, json={"name": "退出后创建"})
    assert rejected.status_code == 401


def test_malformed_token_is_rejected(client: TestClient, default_team):
    response = client.get(
        f"/api/v1/teams/{default_team.id}/datarooms/1/trash",
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401
    assert response.json()["code"] == 401


def test_health_check_echoes_request_id(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.json()["data"] == {"status": "healthy"}
    assert response.headers["X-Request-ID"] == "req-123"
