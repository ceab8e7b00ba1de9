from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from accounts.application.services.account_service import AccountService
from accounts.application.services.authenticator import SessionAuthenticator
from accounts.core.app_factory import create_application
from accounts.core.config import Settings
from accounts.domain.models import User
from accounts.infrastructure.persistence.sqlite import SQLitePersistence
from accounts.services.user_service import UserService

PASSWORD = "super-secret-password"
ADMIN_EMAIL = "admin@example.com"


class RecordingNotifier:
    """Captures confirmation notifications instead of mailing them."""

    def __init__(self) -> None:
        self.sent: List[Tuple[int, str, str]] = []

    def send_confirmation(self, user: User, token: str) -> bool:
        self.sent.append((user.id, user.email, token))
        return True


@pytest.fixture()
def persistence(tmp_path):
    store = SQLitePersistence(tmp_path / "accounts.sqlite3")
    yield store
    store.close()


@pytest.fixture()
def user_service(persistence):
    return UserService(persistence, bcrypt_rounds=4)


@pytest.fixture()
def authenticator(persistence, user_service):
    return SessionAuthenticator(persistence, user_service, secret_key="tests-secret-key-long-enough-for-hs256!")


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def make_account_service(user_service, persistence, authenticator, notifier):
    def _factory(registration_enabled: bool = True) -> AccountService:
        return AccountService(
            user_service,
            persistence,
            authenticator,
            notifier,
            registration_enabled=registration_enabled,
            admin_home_path="/api/admin",
            user_home_path="/api/account",
        )

    return _factory


@pytest.fixture()
def account_service(make_account_service):
    return make_account_service()


@pytest.fixture()
def admin(user_service):
    return user_service.store("Admin", ADMIN_EMAIL, PASSWORD, is_super_admin=True)


@pytest.fixture()
def alice(user_service):
    return user_service.store("Alice", "alice@example.com", PASSWORD)


@pytest.fixture()
def bob(user_service):
    return user_service.store("Bob", "bob@example.com", PASSWORD)


@pytest.fixture()
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.sqlite3"))
    monkeypatch.setenv("SESSION_TOKEN_SECRET", "tests-secret-key-long-enough-for-hs256!")
    monkeypatch.setenv("SUPER_ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("SUPER_ADMIN_NAME", "Admin")
    monkeypatch.setenv("SUPER_ADMIN_PASSWORD", PASSWORD)
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("REGISTRATION_ENABLED", "true")
    for key in ("SMTP_HOST", "SMTP_USERNAME", "SMTP_FROM_EMAIL"):
        monkeypatch.delenv(key, raising=False)
    return Settings()


@pytest.fixture()
def client(settings):
    app = create_application(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def sign_in(client):
    def _sign_in(email: str, password: str = PASSWORD) -> dict:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _sign_in
