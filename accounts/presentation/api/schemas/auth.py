"""Pydantic schemas for registration and login endpoints."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from ....services.user_service import MAX_PASSWORD_BYTES


def check_password_bytes(value: str) -> str:
    """Reject passwords bcrypt cannot hash, counting UTF-8 bytes rather than characters."""
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    return value


class RegisterRequest(BaseModel):
    """Request schema for user registration."""

    name: str = Field(min_length=1, max_length=191)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return check_password_bytes(value)


class RegisterResponse(BaseModel):
    """Response schema for user registration."""

    user_id: int
    email: str
    message: str


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Response schema for user login."""

    access_token: str
    token_type: str = "bearer"
    redirect_to: str
