"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, EmailStr, Field, field_validator

from app.core.roles import Role
from app.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    password_policy_violations,
)
from app.core.tokens import as_utc
from app.schemas.common import CamelModel


def _normalize_email(v: str) -> str:
    return v.strip().lower()


def _check_password_policy(v: str) -> str:
    problems = password_policy_violations(v)
    if problems:
        raise ValueError("; ".join(problems))
    return v


NormalizedEmail = Annotated[EmailStr, AfterValidator(_normalize_email)]
PolicyPassword = Annotated[str, AfterValidator(_check_password_policy)]


class RegisterRequest(CamelModel):
    """New account: email, password meeting the complexity policy, display name."""

    email: NormalizedEmail
    password: PolicyPassword = Field(..., description="At least 8 chars with upper, lower and digit")
    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < NAME_MIN_LEN:
            raise ValueError(f"Name must be at least {NAME_MIN_LEN} characters")
        return v


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: NormalizedEmail
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, max_length=255)


class LogoutRequest(CamelModel):
    """Session to end; omitting the token makes logout a no-op."""

    refresh_token: str | None = Field(default=None, max_length=255)


class VerifyEmailRequest(CamelModel):
    token: str = Field(..., min_length=1, max_length=255)


class ForgotPasswordRequest(CamelModel):
    email: NormalizedEmail


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1, max_length=255)
    password: PolicyPassword


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: PolicyPassword


class UserOut(CamelModel):
    """Public view of a user (no password hash or lockout counters)."""

    id: str
    email: str
    name: str
    role: Role
    email_verified: datetime | None = None
    created_at: datetime | None = None

    @field_validator("email_verified", "created_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class AuthResponse(CamelModel):
    """Returned by register and login."""

    user: UserOut
    access_token: str
    refresh_token: str
    message: str | None = None


class TokenPairResponse(CamelModel):
    """Returned by refresh: a new access token and the rotated refresh token."""

    access_token: str
    refresh_token: str


class MeResponse(CamelModel):
    user: UserOut


class SessionOut(CamelModel):
    """One active session as shown in session management (no token value)."""

    id: str
    user_agent: str | None = None
    ip_address: str | None = None
    created_at: datetime
    expires_at: datetime

    @field_validator("created_at", "expires_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class SessionsResponse(CamelModel):
    sessions: list[SessionOut]


class CurrentUser(CamelModel):
    """Authenticated identity (id, email, role) attached to a request."""

    id: str
    email: str
    role: Role
