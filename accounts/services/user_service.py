"""Service for storing user accounts and checking their credentials."""

import logging
from typing import List, Optional

import bcrypt

from accounts.domain.exceptions import EmailTakenError, InvalidPasswordError, UserNotFoundError
from accounts.domain.models.user import User
from accounts.domain.ports.persistence import UserRepository

logger = logging.getLogger(__name__)

PERMISSION_ACCESS_BACKEND = "access backend"
PERMISSION_MANAGE_USERS = "manage users"
PERMISSION_IMPERSONATE_USERS = "impersonate users"

# bcrypt only reads the first 72 bytes and recent releases reject anything longer.
MAX_PASSWORD_BYTES = 72

SUPER_ADMIN_PERMISSIONS = (
    PERMISSION_ACCESS_BACKEND,
    PERMISSION_MANAGE_USERS,
    PERMISSION_IMPERSONATE_USERS,
)


class UserService:
    """User store: owns email uniqueness and password hashing."""

    def __init__(self, user_repository: UserRepository, bcrypt_rounds: int = 12):
        self.user_repository = user_repository
        self.bcrypt_rounds = bcrypt_rounds

    def store(
        self,
        name: str,
        email: str,
        password: Optional[str] = None,
        *,
        is_active: bool = True,
        is_super_admin: bool = False,
        locale: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> User:
        """
        Create a new user.

        Args:
            name: Display name
            email: Email address, compared case-insensitively
            password: Plain text password, or None for social-only accounts
            is_active: Whether the account may sign in straight away
            is_super_admin: Whether this is the protected administrator

        Returns:
            The persisted User

        Raises:
            EmailTakenError: If another account already owns the email
            InvalidPasswordError: If the password is longer than 72 bytes
        """
        email_clean = email.strip().lower()
        if self.user_repository.get_user_by_email(email_clean):
            raise EmailTakenError(f"The email {email_clean} has already been taken.")

        password_hash = self.hash_password(password) if password else ""
        return self.user_repository.create_user(
            name=name.strip(),
            email=email_clean,
            password_hash=password_hash,
            is_active=is_active,
            is_super_admin=is_super_admin,
            locale=locale,
            timezone=timezone,
        )

    def ensure_super_admin(
        self, name: str, email: Optional[str], password: Optional[str]
    ) -> Optional[User]:
        """Create the super administrator on first start if it is configured."""
        if not email or not password:
            return None
        existing = self.user_repository.get_user_by_email(email.lower())
        if existing:
            return existing
        logger.info("Creating super administrator account for %s", email)
        user = self.store(name, email, password, is_super_admin=True)
        user.confirmed = True
        self.save(user)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self.user_repository.get_user_by_id(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return self.user_repository.get_user_by_email(email.strip().lower())

    def save(self, user: User) -> bool:
        return self.user_repository.save_user(user)

    def delete(self, user: User) -> bool:
        return self.user_repository.delete_user(user.id)

    def email_taken(self, email: str, *, exclude_user_id: Optional[int] = None) -> bool:
        owner = self.get_by_email(email)
        return owner is not None and owner.id != exclude_user_id

    def hash_password(self, password: str) -> str:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidPasswordError(
                f"Passwords may not be longer than {MAX_PASSWORD_BYTES} bytes."
            )
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.bcrypt_rounds)).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False

    @staticmethod
    def get_permissions(user: User) -> List[str]:
        if user.is_super_admin:
            return list(SUPER_ADMIN_PERMISSIONS)
        return []

    def require(self, user_id: int) -> User:
        """Reload a user, failing loudly if the row disappeared."""
        user = self.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} does not exist.")
        return user
