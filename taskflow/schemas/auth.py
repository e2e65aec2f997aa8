"""Authentication request/response schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, EmailStr, Field, field_validator

from taskflow.models import UserRole, UserStatus
from taskflow.schemas.common import ApiModel


def _normalize_email(value: str) -> str:
    return value.strip().lower()


NormalizedEmail = Annotated[EmailStr, AfterValidator(_normalize_email)]


class LoginRequest(ApiModel):
    """Login request schema."""

    email: NormalizedEmail
    password: str = Field(min_length=1)


class RegisterRequest(ApiModel):
    """Self-registration request schema."""

    name: str = Field(min_length=1, max_length=100)
    email: NormalizedEmail
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class GoogleLoginRequest(ApiModel):
    """Sign-in with an externally issued identity token."""

    token: str = Field(min_length=1)


class UserRead(ApiModel):
    """User as returned to clients. Never includes the password hash."""

    id: int
    name: str
    email: str
    role: UserRole
    status: UserStatus
    last_login: datetime | None = None
    created_at: datetime


class AuthResponse(ApiModel):
    """Token response schema."""

    success: bool = True
    message: str
    token: str
    user: UserRead


class ProfileResponse(ApiModel):
    """Current user response schema."""

    success: bool = True
    user: UserRead
