from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Mapping

from ...domain.exceptions import (
    EmailTakenError,
    PasswordMismatchError,
    PersistenceError,
    ProtectedAccountError,
    RegistrationDisabledError,
)
from ...domain.models import ImpersonationContext, Session, SocialProfile, User
from ...domain.models.session import PERMISSIONS_KEY
from ...domain.ports.notifications import ConfirmationNotifier
from ...domain.ports.persistence import SocialLoginRepository
from ...services.user_service import PERMISSION_ACCESS_BACKEND, UserService
from .authenticator import SessionAuthenticator

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "locale", "timezone")

# token_urlsafe(45) yields 60 characters.
CONFIRMATION_TOKEN_BYTES = 45


class AccountService:
    """Account lifecycle operations for the acting user, including admin impersonation."""

    def __init__(
        self,
        users: UserService,
        social_logins: SocialLoginRepository,
        authenticator: SessionAuthenticator,
        notifier: ConfirmationNotifier,
        *,
        registration_enabled: bool = True,
        admin_home_path: str = "/api/admin",
        user_home_path: str = "/api/account",
    ) -> None:
        self._users = users
        self._social_logins = social_logins
        self._auth = authenticator
        self._notifier = notifier
        self._registration_enabled = registration_enabled
        self._admin_home_path = admin_home_path
        self._user_home_path = user_home_path

    # Registration -----------------------------------------------------------
    def register(self, name: str, email: str, password: str) -> User:
        if not self._registration_enabled:
            raise RegistrationDisabledError("Registration is disabled.")
        user = self._users.store(name, email, password)
        logger.info("Registered user %s (%s)", user.id, user.email)
        self._send_confirmation_to(user)
        return user

    def login(self, session: Session, user: User) -> User:
        """Post-authentication hook: stamp the access time and cache permissions."""
        user = self._users.require(user.id)
        user.last_access_at = datetime.now(timezone.utc).replace(microsecond=0)
        if not self._users.save(user):
            raise PersistenceError("There was a problem updating this user. Please try again.")

        session.set(PERMISSIONS_KEY, self._users.get_permissions(user))
        self._auth.save(session)
        return user

    def find_or_create_social(self, provider: str, profile: SocialProfile) -> User:
        provider = provider.strip().lower()
        email = profile.lookup_email(provider)

        user = self._users.get_by_email(email)
        if user is None:
            if not self._registration_enabled:
                raise RegistrationDisabledError("Registration is disabled.")
            user = self._users.store(profile.name or email, email, is_active=True)
            logger.info("Created user %s from %s profile %s", user.id, provider, profile.id)

        if self._social_logins.get_social_login(user.id, provider) is None:
            self._social_logins.add_social_login(user.id, provider, str(profile.id))
            logger.info("Linked %s identity %s to user %s", provider, profile.id, user.id)

        return user

    # Impersonation ----------------------------------------------------------
    def login_as(self, session: Session, actor: User, target: User) -> str:
        """
        Act as ``target`` and return the path to continue at.

        The first administrator to start impersonating stays recorded as the
        restore point; switching targets while impersonating only moves the
        target.
        """
        context = session.impersonation
        if actor.id == target.id:
            return self._admin_home_path
        if context is not None and target.id in (context.target_id, context.admin_id):
            return self._admin_home_path

        if context is None:
            session.begin_impersonation(
                ImpersonationContext(admin_id=actor.id, admin_name=actor.name, target_id=target.id)
            )
            logger.info("User %s started impersonating user %s", actor.id, target.id)
        else:
            session.begin_impersonation(context.retarget(target.id))
            logger.info(
                "User %s switched impersonation to user %s (restore point: %s)",
                actor.id,
                target.id,
                context.admin_id,
            )

        self._auth.login_using_id(session, target.id)
        return self.home_path(target)

    def logout_as(self, session: Session) -> str:
        context = session.impersonation
        if context is not None:
            session.end_impersonation()
            self._auth.login_using_id(session, context.admin_id)
            logger.info("User %s stopped impersonating user %s", context.admin_id, context.target_id)
        return self._admin_home_path

    def home_path(self, user: User) -> str:
        if PERMISSION_ACCESS_BACKEND in self._users.get_permissions(user):
            return self._admin_home_path
        return self._user_home_path

    # Profile ----------------------------------------------------------------
    def update(self, actor: User, fields: Mapping[str, Any]) -> bool:
        user = self._users.require(actor.id)
        changes = {key: fields[key] for key in UPDATABLE_FIELDS if key in fields}

        email_changed = False
        if "email" in changes and changes["email"] is not None:
            new_email = str(changes.pop("email")).strip().lower()
            if new_email != user.email:
                if self._users.email_taken(new_email, exclude_user_id=user.id):
                    raise EmailTakenError("That e-mail address is already taken.")
                user.email = new_email
                email_changed = True
        changes.pop("email", None)

        for key, value in changes.items():
            setattr(user, key, value)

        if email_changed:
            user.confirmed = False
            return self._send_confirmation_to(user)
        return self._users.save(user)

    def change_password(self, actor: User, old_password: str, new_password: str) -> bool:
        user = self._users.require(actor.id)

        if not user.has_password or self._users.verify_password(old_password, user.password_hash):
            user.password_hash = self._users.hash_password(new_password)
            return self._users.save(user)

        raise PasswordMismatchError("That is not your old password.")

    # Confirmation -----------------------------------------------------------
    def send_confirmation(self, actor: User) -> None:
        user = self._users.require(actor.id)
        self._send_confirmation_to(user)

    def confirm_email(self, actor: User, token: str) -> bool:
        """Confirm the actor's email; a wrong token leaves the account untouched."""
        user = self._users.require(actor.id)
        stored = user.confirmation_token
        if not stored or not secrets.compare_digest(stored.encode("utf-8"), token.encode("utf-8")):
            return False
        user.confirmed = True
        user.confirmation_token = None
        return self._users.save(user)

    # Deletion ---------------------------------------------------------------
    def delete(self, actor: User) -> bool:
        user = self._users.require(actor.id)

        if user.is_super_admin:
            raise ProtectedAccountError("You can not delete the super administrator.")

        if not self._users.delete(user):
            raise PersistenceError("There was a problem deleting your account. Please try again.")

        logger.info("Deleted user %s (%s)", user.id, user.email)
        return True

    def _send_confirmation_to(self, user: User) -> bool:
        token = secrets.token_urlsafe(CONFIRMATION_TOKEN_BYTES)
        user.confirmation_token = token
        saved = self._users.save(user)
        self._notifier.send_confirmation(user, token)
        return saved
