"""User domain model for registered and social-only accounts."""

from datetime import datetime, timezone
from typing import Optional


class User:
    """
    User entity shared by regular members and the super administrator.

    Attributes:
        id: Unique identifier
        name: Display name
        email: User email address (unique, lower-cased)
        password_hash: Hashed password, empty for social-only accounts
        is_active: Whether the account may sign in
        confirmed: Whether the email address has been confirmed
        confirmation_token: Pending email confirmation token
        is_super_admin: Whether this is the protected super administrator
        locale: Preferred locale (e.g. "en", "pt_BR")
        timezone: Preferred IANA timezone
        last_access_at: Timestamp of the last successful login
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: int,
        name: str,
        email: str,
        password_hash: str = "",
        is_active: bool = True,
        confirmed: bool = False,
        confirmation_token: Optional[str] = None,
        is_super_admin: bool = False,
        locale: Optional[str] = None,
        timezone: Optional[str] = None,
        last_access_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.email = email
        self.password_hash = password_hash
        self.is_active = is_active
        self.confirmed = confirmed
        self.confirmation_token = confirmation_token
        self.is_super_admin = is_super_admin
        self.locale = locale
        self.timezone = timezone
        self.last_access_at = last_access_at
        self.created_at = created_at or _utcnow()
        self.updated_at = updated_at or _utcnow()

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def __repr__(self) -> str:
        return (
            f"<User id={self.id} email={self.email} active={self.is_active} "
            f"confirmed={self.confirmed} super_admin={self.is_super_admin}>"
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
