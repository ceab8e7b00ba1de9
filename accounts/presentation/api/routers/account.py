"""API router for the signed-in user's own account."""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ....application.services.account_service import AccountService
from ....application.services.authenticator import SessionAuthenticator
from ....core.dependencies import get_account_service, get_authenticator, get_persistence_gateway
from ....domain.exceptions import (
    EmailTakenError,
    InvalidPasswordError,
    PasswordMismatchError,
    PersistenceError,
    ProtectedAccountError,
)
from ....domain.models import Session, User
from ....domain.ports.persistence import PersistenceGateway
from ...api.dependencies import get_current_session, get_current_user
from ...api.schemas.account import (
    AccountResponse,
    ChangePasswordRequest,
    ConfirmEmailRequest,
    ImpersonationResponse,
    UpdateAccountRequest,
)

router = APIRouter(prefix="/api/account", tags=["Account"])


@router.get("", response_model=AccountResponse)
def get_account(
    session: Session = Depends(get_current_session),
    user: User = Depends(get_current_user),
    persistence: PersistenceGateway = Depends(get_persistence_gateway),
) -> AccountResponse:
    """Get the current account, including who is impersonating it."""
    return _serialize_account(session, user, persistence)


@router.patch("", response_model=AccountResponse)
def update_account(
    payload: UpdateAccountRequest,
    session: Session = Depends(get_current_session),
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    persistence: PersistenceGateway = Depends(get_persistence_gateway),
) -> AccountResponse:
    try:
        saved = account_service.update(user, payload.model_dump(exclude_unset=True, exclude_none=True))
    except EmailTakenError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if not saved:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="There was a problem updating your profile.",
        )
    refreshed = authenticator.current_user(session) or user
    return _serialize_account(session, refreshed, persistence)


@router.post("/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> Response:
    try:
        account_service.change_password(user, payload.old_password, payload.new_password)
    except PasswordMismatchError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except InvalidPasswordError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/confirmation", status_code=status.HTTP_202_ACCEPTED)
def send_confirmation(
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> dict:
    """Send a fresh confirmation email."""
    if user.confirmed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already confirmed.")
    account_service.send_confirmation(user)
    return {"message": "Confirmation email sent."}


@router.post("/confirm")
def confirm_email(
    payload: ConfirmEmailRequest,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> dict:
    if not account_service.confirm_email(user, payload.token):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid confirmation token.")
    return {"message": "Email confirmed."}


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    session: Session = Depends(get_current_session),
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> Response:
    try:
        account_service.delete(user)
    except ProtectedAccountError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    # An impersonating admin falls back to their own account instead of being signed out.
    if session.is_impersonating:
        account_service.logout_as(session)
    else:
        authenticator.end_session(session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _serialize_account(session: Session, user: User, persistence: PersistenceGateway) -> AccountResponse:
    context = session.impersonation
    return AccountResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        confirmed=user.confirmed,
        locale=user.locale,
        timezone=user.timezone,
        last_access_at=user.last_access_at,
        created_at=user.created_at,
        providers=[link.provider for link in persistence.list_social_logins(user.id)],
        permissions=session.permissions,
        impersonation=ImpersonationResponse(**context.to_dict()) if context else None,
    )
