from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.account_service import AccountService
from ..application.services.authenticator import SessionAuthenticator
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.routers import account as account_router
from ..presentation.api.routers import admin as admin_router
from ..presentation.api.routers import auth as auth_router
from ..services.email_service import EmailService
from ..services.user_service import UserService

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Account Service", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)
    app.include_router(account_router.router)
    app.include_router(admin_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        container: ApplicationContainer = app.state.container  # type: ignore[attr-defined]
        return {"ok": True, "registration_enabled": container.settings.registration_enabled}

    return app


def build_container(settings: Settings) -> ApplicationContainer:
    persistence = SQLitePersistence(settings.database_path)
    user_service = UserService(persistence, bcrypt_rounds=settings.bcrypt_rounds)
    email_service = EmailService(
        base_url=settings.frontend_base_url,
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
        from_name=settings.smtp_from_name,
    )
    authenticator = SessionAuthenticator(
        sessions=persistence,
        users=user_service,
        secret_key=settings.session_token_secret,
        token_exp_minutes=settings.session_token_exp_minutes,
    )
    account_service = AccountService(
        user_service,
        persistence,
        authenticator,
        email_service,
        registration_enabled=settings.registration_enabled,
        admin_home_path=settings.admin_home_path,
        user_home_path=settings.user_home_path,
    )
    return ApplicationContainer(
        settings=settings,
        persistence=persistence,
        user_service=user_service,
        email_service=email_service,
        authenticator=authenticator,
        account_service=account_service,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        container = build_container(settings)
        container.user_service.ensure_super_admin(
            settings.super_admin_name,
            settings.super_admin_email,
            settings.super_admin_password,
        )
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("Account service started with database %s", settings.database_path)

        try:
            yield
        finally:
            container.persistence.close()

    return lifespan
