import pytest
from fastapi.testclient import TestClient

from accounts.core.app_factory import create_application
from accounts.core.config import Settings

PASSWORD = "super-secret-password"
ADMIN_EMAIL = "admin@example.com"


def _register(client, name, email, password=PASSWORD):
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


def _container(client):
    return client.app.state.container


@pytest.fixture()
def closed_client(settings, monkeypatch):
    monkeypatch.setenv("REGISTRATION_ENABLED", "false")
    with TestClient(create_application(Settings())) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "registration_enabled": True}


def test_register_then_login(client, sign_in):
    body = _register(client, "Alice", "alice@example.com")
    assert body["email"] == "alice@example.com"

    duplicate = client.post(
        "/api/auth/register",
        json={"name": "Alice", "email": "ALICE@example.com", "password": PASSWORD},
    )
    assert duplicate.status_code == 409

    headers = sign_in("alice@example.com")
    account = client.get("/api/account", headers=headers)
    assert account.status_code == 200
    data = account.json()
    assert data["email"] == "alice@example.com"
    assert data["confirmed"] is False
    assert data["last_access_at"] is not None
    assert data["permissions"] == []
    assert data["impersonation"] is None


def test_register_is_forbidden_when_registration_is_disabled(closed_client):
    response = closed_client.post(
        "/api/auth/register",
        json={"name": "Alice", "email": "alice@example.com", "password": PASSWORD},
    )

    assert response.status_code == 403
    assert closed_client.get("/health").json()["registration_enabled"] is False
    assert closed_client.app.state.container.user_service.get_by_email("alice@example.com") is None


def test_register_rejects_multibyte_password_over_72_bytes(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Alice", "email": "alice@example.com", "password": "é" * 40},
    )

    assert response.status_code == 422
    assert _container(client).user_service.get_by_email("alice@example.com") is None


def test_login_rejects_bad_credentials(client):
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "nope"})
    assert response.status_code == 401


def test_admin_login_points_to_admin_home(client):
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["redirect_to"] == "/api/admin"


def test_account_requires_token(client):
    assert client.get("/api/account").status_code == 401
    assert client.get("/api/account", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_logout_ends_session(client, sign_in):
    _register(client, "Alice", "alice@example.com")
    headers = sign_in("alice@example.com")

    assert client.post("/api/auth/logout", headers=headers).status_code == 204
    assert client.get("/api/account", headers=headers).status_code == 401


def test_update_profile_and_taken_email(client, sign_in):
    _register(client, "Alice", "alice@example.com")
    _register(client, "Bob", "bob@example.com")
    headers = sign_in("alice@example.com")

    response = client.patch(
        "/api/account", json={"name": "Alice L.", "timezone": "Europe/Lisbon"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Alice L."
    assert response.json()["timezone"] == "Europe/Lisbon"

    taken = client.patch("/api/account", json={"email": "bob@example.com"}, headers=headers)
    assert taken.status_code == 409
    assert client.get("/api/account", headers=headers).json()["email"] == "alice@example.com"


def test_change_password(client, sign_in):
    _register(client, "Alice", "alice@example.com")
    headers = sign_in("alice@example.com")

    wrong = client.post(
        "/api/account/password",
        json={"old_password": "wrong", "new_password": "another-password"},
        headers=headers,
    )
    assert wrong.status_code == 400

    ok = client.post(
        "/api/account/password",
        json={"old_password": PASSWORD, "new_password": "another-password"},
        headers=headers,
    )
    assert ok.status_code == 204
    sign_in("alice@example.com", "another-password")

    too_long = client.post(
        "/api/account/password",
        json={"old_password": "another-password", "new_password": "é" * 40},
        headers=headers,
    )
    assert too_long.status_code == 422
    sign_in("alice@example.com", "another-password")


def test_confirm_email(client, sign_in):
    body = _register(client, "Alice", "alice@example.com")
    headers = sign_in("alice@example.com")
    token = _container(client).user_service.get_by_id(body["user_id"]).confirmation_token

    bad = client.post("/api/account/confirm", json={"token": "wrong"}, headers=headers)
    assert bad.status_code == 400

    good = client.post("/api/account/confirm", json={"token": token}, headers=headers)
    assert good.status_code == 200
    assert client.get("/api/account", headers=headers).json()["confirmed"] is True

    again = client.post("/api/account/confirmation", headers=headers)
    assert again.status_code == 400


def test_resend_confirmation(client, sign_in):
    body = _register(client, "Alice", "alice@example.com")
    headers = sign_in("alice@example.com")
    users = _container(client).user_service
    first_token = users.get_by_id(body["user_id"]).confirmation_token

    response = client.post("/api/account/confirmation", headers=headers)

    assert response.status_code == 202
    assert users.get_by_id(body["user_id"]).confirmation_token != first_token


def test_delete_account(client, sign_in):
    body = _register(client, "Alice", "alice@example.com")
    headers = sign_in("alice@example.com")

    assert client.delete("/api/account", headers=headers).status_code == 204
    assert _container(client).user_service.get_by_id(body["user_id"]) is None
    assert client.get("/api/account", headers=headers).status_code == 401


def test_super_admin_cannot_delete_itself(client, sign_in):
    headers = sign_in(ADMIN_EMAIL)

    assert client.delete("/api/account", headers=headers).status_code == 403
    assert _container(client).user_service.get_by_email(ADMIN_EMAIL) is not None


def test_admin_home_requires_backend_access(client, sign_in):
    _register(client, "Alice", "alice@example.com")

    assert client.get("/api/admin", headers=sign_in("alice@example.com")).status_code == 403
    assert client.get("/api/admin", headers=sign_in(ADMIN_EMAIL)).status_code == 200


def test_regular_user_cannot_login_as(client, sign_in):
    _register(client, "Alice", "alice@example.com")
    bob = _register(client, "Bob", "bob@example.com")
    headers = sign_in("alice@example.com")

    response = client.post(
        f"/api/admin/users/{bob['user_id']}/login-as", headers=headers, follow_redirects=False
    )
    assert response.status_code == 403


def test_login_as_unknown_user_is_404(client, sign_in):
    response = client.post("/api/admin/users/9999/login-as", headers=sign_in(ADMIN_EMAIL), follow_redirects=False)
    assert response.status_code == 404


def test_impersonation_round_trip(client, sign_in):
    alice = _register(client, "Alice", "alice@example.com")
    bob = _register(client, "Bob", "bob@example.com")
    headers = sign_in(ADMIN_EMAIL)

    first = client.post(
        f"/api/admin/users/{alice['user_id']}/login-as", headers=headers, follow_redirects=False
    )
    assert first.status_code == 303
    assert first.headers["location"] == "/api/account"

    as_alice = client.get("/api/account", headers=headers).json()
    assert as_alice["email"] == "alice@example.com"
    assert as_alice["impersonation"]["admin_name"] == "Admin"
    assert as_alice["impersonation"]["target_id"] == alice["user_id"]

    # Alice has no admin rights, but the impersonating admin may still switch targets.
    second = client.post(
        f"/api/admin/users/{bob['user_id']}/login-as", headers=headers, follow_redirects=False
    )
    assert second.status_code == 303

    as_bob = client.get("/api/account", headers=headers).json()
    assert as_bob["email"] == "bob@example.com"
    admin_id = as_bob["impersonation"]["admin_id"]
    assert as_bob["impersonation"]["target_id"] == bob["user_id"]

    back = client.post("/api/admin/logout-as", headers=headers, follow_redirects=False)
    assert back.status_code == 303
    assert back.headers["location"] == "/api/admin"

    restored = client.get("/api/account", headers=headers).json()
    assert restored["id"] == admin_id
    assert restored["email"] == ADMIN_EMAIL
    assert restored["impersonation"] is None
    assert client.get("/api/admin", headers=headers).status_code == 200


def test_logout_as_without_impersonation_only_redirects(client, sign_in):
    _register(client, "Alice", "alice@example.com")
    headers = sign_in("alice@example.com")

    response = client.post("/api/admin/logout-as", headers=headers, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/api/admin"
    assert client.get("/api/account", headers=headers).json()["email"] == "alice@example.com"


def test_deleting_impersonated_account_returns_admin_to_own_session(client, sign_in):
    alice = _register(client, "Alice", "alice@example.com")
    headers = sign_in(ADMIN_EMAIL)
    client.post(f"/api/admin/users/{alice['user_id']}/login-as", headers=headers, follow_redirects=False)

    assert client.delete("/api/account", headers=headers).status_code == 204

    assert _container(client).user_service.get_by_id(alice["user_id"]) is None
    restored = client.get("/api/account", headers=headers)
    assert restored.status_code == 200
    assert restored.json()["email"] == ADMIN_EMAIL
    assert restored.json()["impersonation"] is None
    assert client.get("/api/admin", headers=headers).status_code == 200
