"""Pydantic schemas for the account endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .auth import check_password_bytes


class UpdateAccountRequest(BaseModel):
    """Editable profile fields; anything else sent by the client is ignored."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=191)
    email: Optional[EmailStr] = None
    locale: Optional[str] = Field(default=None, max_length=16)
    timezone: Optional[str] = Field(default=None, max_length=64)


class ChangePasswordRequest(BaseModel):
    old_password: str = ""
    new_password: str = Field(min_length=6, max_length=72)

    @field_validator("new_password")
    @classmethod
    def new_password_fits_bcrypt(cls, value: str) -> str:
        return check_password_bytes(value)


class ConfirmEmailRequest(BaseModel):
    token: str


class ImpersonationResponse(BaseModel):
    admin_id: int
    admin_name: str
    target_id: int


class AccountResponse(BaseModel):
    """Response schema for the current account."""

    id: int
    name: str
    email: str
    confirmed: bool
    locale: Optional[str]
    timezone: Optional[str]
    last_access_at: Optional[datetime]
    created_at: datetime
    providers: List[str]
    permissions: List[str]
    impersonation: Optional[ImpersonationResponse] = None
