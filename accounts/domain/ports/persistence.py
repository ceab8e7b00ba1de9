from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from ..models import Session, SocialLogin, User


class UserRepository(Protocol):
    """Persistence functions related to user accounts."""

    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        *,
        is_active: bool = True,
        is_super_admin: bool = False,
        locale: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> User:
        ...

    def save_user(self, user: User) -> bool:
        ...

    def delete_user(self, user_id: int) -> bool:
        ...


class SocialLoginRepository(Protocol):
    """Persistence functions related to linked social identities."""

    def get_social_login(self, user_id: int, provider: str) -> Optional[SocialLogin]:
        ...

    def add_social_login(self, user_id: int, provider: str, provider_id: str) -> SocialLogin:
        ...

    def list_social_logins(self, user_id: int) -> List[SocialLogin]:
        ...


class SessionRepository(Protocol):
    """Server-side storage for per-browser session state."""

    def create_session(self) -> Session:
        ...

    def get_session(self, session_id: str) -> Optional[Session]:
        ...

    def save_session(self, session: Session) -> None:
        ...

    def delete_session(self, session_id: str) -> None:
        ...

    def purge_expired_sessions(self, created_before: datetime) -> int:
        ...


class PersistenceGateway(
    UserRepository,
    SocialLoginRepository,
    SessionRepository,
    Protocol,
):
    """Composite gateway combining every persistence concern used by the app."""

    pass
