from fastapi import APIRouter, Depends, HTTPException, Response, status

from ....application.services.account_service import AccountService
from ....application.services.authenticator import SessionAuthenticator
from ....core.dependencies import get_account_service, get_authenticator
from ....domain.exceptions import (
    AuthenticationFailed,
    EmailTakenError,
    InvalidPasswordError,
    PersistenceError,
    RegistrationDisabledError,
)
from ....domain.models import Session
from ...api.dependencies import get_current_session
from ...api.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    account_service: AccountService = Depends(get_account_service),
) -> RegisterResponse:
    try:
        user = account_service.register(payload.name, payload.email, payload.password)
    except EmailTakenError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RegistrationDisabledError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except InvalidPasswordError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    return RegisterResponse(
        user_id=user.id,
        email=user.email,
        message="Registration successful. Please check your email to confirm your account.",
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    account_service: AccountService = Depends(get_account_service),
) -> LoginResponse:
    try:
        user = authenticator.authenticate(payload.email, payload.password)
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    session, token = authenticator.start_session(user)
    try:
        user = account_service.login(session, user)
    except PersistenceError as exc:
        authenticator.end_session(session)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return LoginResponse(access_token=token, redirect_to=account_service.home_path(user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    session: Session = Depends(get_current_session),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> Response:
    authenticator.end_session(session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
