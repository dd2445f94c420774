"""Auth routes and the auth dependencies (get_current_user, require_roles)."""

from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.roles import Role
from app.core.tokens import AuthPolicy, TokenService
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
    SessionsResponse,
    TokenPairResponse,
    VerifyEmailRequest,
)
from app.schemas.common import Envelope, MessageResponse
from app.services.auth import AuthService
from app.services.notifications import Notifier

router = APIRouter()
security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service built from settings (overridable in tests)."""
    return TokenService(AuthPolicy.from_settings(get_settings()))


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> AuthService:
    return AuthService(db, tokens, Notifier(get_settings()))


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token and return its identity.

    Missing, malformed, forged and expired tokens all get the same 401.
    """
    if credentials is None:
        raise UnauthorizedError()
    payload = tokens.verify_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedError()
    return CurrentUser(id=payload.user_id, email=payload.email, role=payload.role)


def require_roles(*roles: Role) -> Callable[..., CurrentUser]:
    """Dependency factory: 403 unless the authenticated role is one of roles."""
    allowed = frozenset(roles)

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise ForbiddenError()
        return current_user

    return dependency


require_admin = require_roles(Role.ADMIN)

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def _client_meta(request: Request) -> tuple[str | None, str | None]:
    user_agent = request.headers.get("user-agent")
    ip_address = request.client.host if request.client else None
    return user_agent, ip_address


@router.post(
    "/register",
    response_model=Envelope[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    request: Request,
    auth: AuthServiceDep,
) -> Envelope[AuthResponse]:
    """Create a VIEWER account and log it in. Email verification is not required to log in."""
    user_agent, ip_address = _client_meta(request)
    result = auth.register(body.email, body.password, body.name, user_agent, ip_address)
    return Envelope[AuthResponse](data=result)


@router.post("/login", response_model=Envelope[AuthResponse])
def login(
    body: LoginRequest,
    request: Request,
    auth: AuthServiceDep,
) -> Envelope[AuthResponse]:
    """
    Authenticate with email and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    user_agent, ip_address = _client_meta(request)
    result = auth.login(body.email, body.password, user_agent, ip_address)
    return Envelope[AuthResponse](data=result)


@router.post("/refresh", response_model=Envelope[TokenPairResponse])
def refresh(body: RefreshRequest, auth: AuthServiceDep) -> Envelope[TokenPairResponse]:
    """Rotate the refresh token; the submitted one stops working immediately."""
    return Envelope[TokenPairResponse](data=auth.refresh(body.refresh_token))


@router.post("/logout", response_model=Envelope[MessageResponse])
def logout(
    auth: AuthServiceDep,
    current_user: CurrentUserDep,
    body: LogoutRequest | None = None,
) -> Envelope[MessageResponse]:
    refresh_token = body.refresh_token if body is not None else None
    return Envelope[MessageResponse](data=auth.logout(current_user.id, refresh_token))


@router.post("/logout-all", response_model=Envelope[MessageResponse])
def logout_all(
    auth: AuthServiceDep,
    current_user: CurrentUserDep,
) -> Envelope[MessageResponse]:
    return Envelope[MessageResponse](data=auth.logout_all(current_user.id))


@router.get("/me", response_model=Envelope[MeResponse])
def me(auth: AuthServiceDep, current_user: CurrentUserDep) -> Envelope[MeResponse]:
    return Envelope[MeResponse](data=MeResponse(user=auth.me(current_user.id)))


@router.post("/verify-email", response_model=Envelope[MessageResponse])
def verify_email(
    body: VerifyEmailRequest,
    auth: AuthServiceDep,
) -> Envelope[MessageResponse]:
    return Envelope[MessageResponse](data=auth.verify_email(body.token))


@router.post("/forgot-password", response_model=Envelope[MessageResponse])
def forgot_password(
    body: ForgotPasswordRequest,
    auth: AuthServiceDep,
) -> Envelope[MessageResponse]:
    """Always 200 with the same message, whether or not the email is registered."""
    return Envelope[MessageResponse](data=auth.forgot_password(body.email))


@router.post("/reset-password", response_model=Envelope[MessageResponse])
def reset_password(
    body: ResetPasswordRequest,
    auth: AuthServiceDep,
) -> Envelope[MessageResponse]:
    """Redeem a reset token. Every existing session of the account is revoked."""
    return Envelope[MessageResponse](data=auth.reset_password(body.token, body.password))


@router.post("/change-password", response_model=Envelope[MessageResponse])
def change_password(
    body: ChangePasswordRequest,
    auth: AuthServiceDep,
    current_user: CurrentUserDep,
) -> Envelope[MessageResponse]:
    result = auth.change_password(current_user.id, body.current_password, body.new_password)
    return Envelope[MessageResponse](data=result)


@router.get("/sessions", response_model=Envelope[SessionsResponse])
def list_sessions(
    auth: AuthServiceDep,
    current_user: CurrentUserDep,
) -> Envelope[SessionsResponse]:
    sessions = auth.list_sessions(current_user.id)
    return Envelope[SessionsResponse](data=SessionsResponse(sessions=sessions))


@router.delete("/sessions/{session_id}", response_model=Envelope[MessageResponse])
def revoke_session(
    session_id: str,
    auth: AuthServiceDep,
    current_user: CurrentUserDep,
) -> Envelope[MessageResponse]:
    """Revoke one of the caller's own sessions; other users' sessions are 404."""
    return Envelope[MessageResponse](data=auth.revoke_session(current_user.id, session_id))
