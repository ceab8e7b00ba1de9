import json
import secrets
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ...domain.exceptions import EmailTakenError
from ...domain.models import Session, SocialLogin, User
from ...domain.ports.persistence import PersistenceGateway


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL DEFAULT '',
                    is_active INTEGER NOT NULL DEFAULT 1,
                    confirmed INTEGER NOT NULL DEFAULT 0,
                    confirmation_token TEXT,
                    is_super_admin INTEGER NOT NULL DEFAULT 0,
                    locale TEXT,
                    timezone TEXT,
                    last_access_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS social_logins (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    provider TEXT NOT NULL,
                    provider_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE(user_id, provider),
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_social_logins_provider
                    ON social_logins(provider, provider_id);

                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    def close(self) -> None:
        self._conn.close()

    # UserRepository API -----------------------------------------------------
    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM users WHERE email = ?", (email.lower(),))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

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
        normalized = email.lower()
        now = self._now()
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    INSERT INTO users (
                        name, email, password_hash, is_active, is_super_admin,
                        locale, timezone, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        name,
                        normalized,
                        password_hash,
                        int(is_active),
                        int(is_super_admin),
                        locale,
                        timezone,
                        now,
                        now,
                    ),
                )
                user_id = cur.lastrowid
                cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
                row = cur.fetchone()
        except sqlite3.IntegrityError as exc:
            raise EmailTakenError(f"The email {normalized} has already been taken.") from exc
        if not row:
            raise RuntimeError("Failed to persist user.")
        return self._row_to_user(row)

    def save_user(self, user: User) -> bool:
        user.updated_at = datetime.now(timezone.utc).replace(microsecond=0)
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    UPDATE users SET
                        name = ?, email = ?, password_hash = ?, is_active = ?,
                        confirmed = ?, confirmation_token = ?, is_super_admin = ?,
                        locale = ?, timezone = ?, last_access_at = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        user.name,
                        user.email.lower(),
                        user.password_hash or "",
                        int(user.is_active),
                        int(user.confirmed),
                        user.confirmation_token,
                        int(user.is_super_admin),
                        user.locale,
                        user.timezone,
                        user.last_access_at.isoformat() if user.last_access_at else None,
                        user.updated_at.isoformat(),
                        user.id,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise EmailTakenError(f"The email {user.email} has already been taken.") from exc
        return cur.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cur.rowcount > 0

    # SocialLoginRepository API ---------------------------------------------
    def get_social_login(self, user_id: int, provider: str) -> Optional[SocialLogin]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM social_logins WHERE user_id = ? AND provider = ?",
                (user_id, provider),
            )
            row = cur.fetchone()
        return self._row_to_social_login(row) if row else None

    def add_social_login(self, user_id: int, provider: str, provider_id: str) -> SocialLogin:
        now = self._now()
        with self._lock, self._conn:
            # A concurrent request may have linked the provider already.
            self._conn.execute(
                """
                INSERT OR IGNORE INTO social_logins (user_id, provider, provider_id, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, provider, provider_id, now),
            )
            cur = self._conn.execute(
                "SELECT * FROM social_logins WHERE user_id = ? AND provider = ?",
                (user_id, provider),
            )
            row = cur.fetchone()
        if not row:
            raise RuntimeError("Failed to persist social login.")
        return self._row_to_social_login(row)

    def list_social_logins(self, user_id: int) -> List[SocialLogin]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM social_logins WHERE user_id = ? ORDER BY provider",
                (user_id,),
            )
            rows = cur.fetchall()
        return [self._row_to_social_login(row) for row in rows]

    # SessionRepository API --------------------------------------------------
    def create_session(self) -> Session:
        session_id = secrets.token_urlsafe(32)
        now = self._now()
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO sessions (id, data, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (session_id, "{}", now, now),
            )
        parsed = self._parse_datetime(now)
        return Session(id=session_id, data={}, created_at=parsed, updated_at=parsed)

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
            row = cur.fetchone()
        if not row:
            return None
        return Session(
            id=row["id"],
            data=json.loads(row["data"]),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )

    def save_session(self, session: Session) -> None:
        now = self._now()
        payload = json.dumps(session.data, default=str, ensure_ascii=False)
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO sessions (id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (session.id, payload, now, now),
            )
        session.updated_at = self._parse_datetime(now)

    def delete_session(self, session_id: str) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))

    def purge_expired_sessions(self, created_before: datetime) -> int:
        """Delete sessions whose bearer tokens can no longer be valid."""
        cutoff = created_before.astimezone(timezone.utc).replace(microsecond=0).isoformat()
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM sessions WHERE created_at < ?", (cutoff,))
        return cur.rowcount

    # Helpers ----------------------------------------------------------------
    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _parse_datetime(value: str) -> datetime:
        try:
            result = datetime.fromisoformat(value)
        except ValueError:
            result = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"] or "",
            is_active=bool(row["is_active"]),
            confirmed=bool(row["confirmed"]),
            confirmation_token=row["confirmation_token"],
            is_super_admin=bool(row["is_super_admin"]),
            locale=row["locale"],
            timezone=row["timezone"],
            last_access_at=self._parse_datetime(row["last_access_at"])
            if row["last_access_at"]
            else None,
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )

    def _row_to_social_login(self, row: sqlite3.Row) -> SocialLogin:
        return SocialLogin(
            id=row["id"],
            user_id=row["user_id"],
            provider=row["provider"],
            provider_id=row["provider_id"],
            created_at=self._parse_datetime(row["created_at"]),
        )
