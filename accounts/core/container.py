from dataclasses import dataclass

from ..application.services.account_service import AccountService
from ..application.services.authenticator import SessionAuthenticator
from .config import Settings
from ..domain.ports.persistence import PersistenceGateway
from ..services.email_service import EmailService
from ..services.user_service import UserService


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    user_service: UserService
    email_service: EmailService
    authenticator: SessionAuthenticator
    account_service: AccountService
