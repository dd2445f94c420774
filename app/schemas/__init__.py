"""Pydantic request/response schemas."""

from app.schemas.admin import UpdateRoleRequest, UserResponse, UsersListResponse
from app.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    CurrentUser,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionOut,
    SessionsResponse,
    TokenPairResponse,
    UserOut,
    VerifyEmailRequest,
)
from app.schemas.common import Envelope, ErrorBody, ErrorEnvelope, MessageResponse
from app.schemas.health import HealthResponse

__all__ = [
    "AuthResponse",
    "ChangePasswordRequest",
    "CurrentUser",
    "Envelope",
    "ErrorBody",
    "ErrorEnvelope",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "LogoutRequest",
    "MeResponse",
    "MessageResponse",
    "RefreshRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "SessionOut",
    "SessionsResponse",
    "TokenPairResponse",
    "UpdateRoleRequest",
    "UserOut",
    "UserResponse",
    "UsersListResponse",
    "VerifyEmailRequest",
]
