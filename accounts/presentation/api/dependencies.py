from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.authenticator import SessionAuthenticator
from ...core.dependencies import get_authenticator
from ...domain.exceptions import SessionUnknown
from ...domain.models import Session, User
from ...services.user_service import PERMISSION_ACCESS_BACKEND, PERMISSION_IMPERSONATE_USERS

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> Session:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token.")
    try:
        return authenticator.resolve(credentials.credentials)
    except SessionUnknown as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


def get_current_user(
    session: Session = Depends(get_current_session),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> User:
    user = authenticator.current_user(session)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in.")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated.")
    return user


def require_backend_access(
    session: Session = Depends(get_current_session),
    user: User = Depends(get_current_user),
) -> User:
    if PERMISSION_ACCESS_BACKEND not in session.permissions:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Backend access required.")
    return user


def require_impersonation_access(
    session: Session = Depends(get_current_session),
    user: User = Depends(get_current_user),
) -> User:
    # While impersonating, the original administrator keeps the right to switch targets.
    if PERMISSION_IMPERSONATE_USERS not in session.permissions and not session.is_impersonating:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Impersonation not allowed.")
    return user
