from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from ....application.services.account_service import AccountService
from ....core.dependencies import get_account_service, get_user_service
from ....domain.models import Session, User
from ....services.user_service import UserService
from ...api.dependencies import (
    get_current_session,
    get_current_user,
    require_backend_access,
    require_impersonation_access,
)

router = APIRouter(prefix="/api/admin", tags=["Administration"])


@router.get("")
def admin_home(
    session: Session = Depends(get_current_session),
    current_user: User = Depends(require_backend_access),
) -> dict:
    context = session.impersonation
    return {
        "user": _serialize_user(current_user),
        "impersonation": context.to_dict() if context else None,
    }


@router.post("/users/{user_id}/login-as")
def login_as(
    user_id: int,
    session: Session = Depends(get_current_session),
    current_user: User = Depends(require_impersonation_access),
    user_service: UserService = Depends(get_user_service),
    account_service: AccountService = Depends(get_account_service),
) -> RedirectResponse:
    target = user_service.get_by_id(user_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    location = account_service.login_as(session, current_user, target)
    return RedirectResponse(location, status_code=status.HTTP_303_SEE_OTHER)


@router.post("/logout-as")
def logout_as(
    session: Session = Depends(get_current_session),
    _: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> RedirectResponse:
    location = account_service.logout_as(session)
    return RedirectResponse(location, status_code=status.HTTP_303_SEE_OTHER)


def _serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "is_super_admin": user.is_super_admin,
        "created_at": user.created_at.replace(microsecond=0).isoformat(),
        "updated_at": user.updated_at.replace(microsecond=0).isoformat(),
    }
