from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt

from ...domain.exceptions import AuthenticationFailed, SessionUnknown, UserNotFoundError
from ...domain.models import Session, User
from ...domain.models.session import PERMISSIONS_KEY, USER_ID_KEY
from ...domain.ports.persistence import SessionRepository
from ...services.user_service import UserService

logger = logging.getLogger(__name__)


class SessionAuthenticator:
    """Checks credentials and tracks the active identity of each session."""

    def __init__(
        self,
        sessions: SessionRepository,
        users: UserService,
        secret_key: str,
        token_exp_minutes: int = 1440,
        algorithm: str = "HS256",
    ) -> None:
        if not secret_key:
            raise RuntimeError("SESSION_TOKEN_SECRET is not configured.")
        if secret_key == "change-me":
            logger.warning(
                "SESSION_TOKEN_SECRET is using the default value. Configure a real secret in production."
            )
        self._sessions = sessions
        self._users = users
        self._secret_key = secret_key
        self._token_exp_minutes = token_exp_minutes
        self._algorithm = algorithm

    # ------------------------------------------------------------------
    def authenticate(self, email: str, password: str) -> User:
        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationFailed("Invalid email or password.")
        if not self._users.verify_password(password, user.password_hash):
            raise AuthenticationFailed("Invalid email or password.")
        return user

    def start_session(self, user: User) -> Tuple[Session, str]:
        self.purge_expired()
        session = self._sessions.create_session()
        self._bind(session, user)
        self._sessions.save_session(session)
        return session, self._create_token(session)

    def resolve(self, token: str) -> Session:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.InvalidTokenError as exc:
            raise SessionUnknown("Invalid or expired token.") from exc
        session_id = payload.get("sid")
        if not session_id:
            raise SessionUnknown("Invalid or expired token.")
        session = self._sessions.get_session(session_id)
        if session is None:
            raise SessionUnknown("Session has ended.")
        return session

    def current_user(self, session: Session) -> Optional[User]:
        user_id = session.user_id
        if user_id is None:
            return None
        return self._users.get_by_id(user_id)

    def login_using_id(self, session: Session, user_id: int) -> User:
        """Switch the active identity of ``session`` and persist it."""
        user = self._users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} does not exist.")
        self._bind(session, user)
        self._sessions.save_session(session)
        return user

    def save(self, session: Session) -> None:
        self._sessions.save_session(session)

    def end_session(self, session: Session) -> None:
        self._sessions.delete_session(session.id)

    def purge_expired(self) -> int:
        """Drop sessions older than the token lifetime; their tokens have all expired."""
        cutoff = datetime.now(tz=timezone.utc) - timedelta(minutes=self._token_exp_minutes)
        purged = self._sessions.purge_expired_sessions(cutoff)
        if purged:
            logger.info("Purged %s expired sessions", purged)
        return purged

    def _bind(self, session: Session, user: User) -> None:
        session.set(USER_ID_KEY, user.id)
        session.set(PERMISSIONS_KEY, self._users.get_permissions(user))

    def _create_token(self, session: Session) -> str:
        now = datetime.now(tz=timezone.utc)
        expire = now + timedelta(minutes=self._token_exp_minutes)
        payload = {"sid": session.id, "iat": now, "exp": expire}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
