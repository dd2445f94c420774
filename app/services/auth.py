"""
Auth flows: registration, login with lockout, refresh rotation, logout,
email verification and password reset/change.

Every public method is one unit of work: it commits once on success and rolls
back all partial writes when anything raises. The two flows that must persist
a side effect before reporting failure (failed login counter, expired refresh
session cleanup) commit explicitly before raising.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from functools import lru_cache

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    AccountLockedError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidPasswordError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    NotFoundError,
    RefreshTokenExpiredError,
    TokenExpiredError,
    TokenUsedError,
)
from app.core.roles import Role
from app.core.security import hash_password, verify_password
from app.core.tokens import TokenService, as_utc
from app.models import EmailVerificationToken, PasswordResetToken, User
from app.schemas.auth import (
    AuthResponse,
    SessionOut,
    TokenPairResponse,
    UserOut,
)
from app.schemas.common import MessageResponse
from app.services.credentials import is_locked, record_failed_login, reset_failed_logins
from app.services.notifications import Notifier
from app.services.sessions import SessionRegistry

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Please check your email to verify your account"
FORGOT_PASSWORD_MESSAGE = "If the email exists, a password reset link has been sent"

SingleUseToken = PasswordResetToken | EmailVerificationToken


@lru_cache
def _dummy_hash(rounds: int) -> str:
    """Hash compared against when the email is unknown, so both paths cost the same."""
    return hash_password("unknown-account-placeholder", rounds)


class AuthService:
    """Orchestrates the credential store, token service and session registry."""

    def __init__(
        self,
        db: Session,
        tokens: TokenService,
        notifier: Notifier | None = None,
    ) -> None:
        self.db = db
        self.tokens = tokens
        self.policy = tokens.policy
        self.sessions = SessionRegistry(db)
        self.notifier = notifier

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _now(self) -> datetime:
        return self.tokens.clock()

    def _user_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def _open_session(
        self, user: User, user_agent: str | None, ip_address: str | None
    ) -> str:
        refresh_token = self.tokens.issue_refresh_token()
        self.sessions.create(
            user_id=user.id,
            refresh_token=refresh_token,
            expires_at=self.tokens.refresh_token_expiry(),
            user_agent=user_agent,
            ip_address=ip_address,
        )
        return refresh_token

    def _access_token(self, user: User) -> str:
        return self.tokens.issue_access_token(user.id, user.email, Role(user.role))

    # Registration and login

    def register(
        self,
        email: str,
        password: str,
        name: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> AuthResponse:
        """Create a VIEWER account, open its first session and issue a verification token."""
        password_hash = hash_password(password, self.policy.bcrypt_rounds)
        with self._transaction():
            if self._user_by_email(email) is not None:
                raise EmailExistsError()
            user = User(
                email=email,
                password_hash=password_hash,
                name=name,
                role=Role.VIEWER,
                failed_login_attempts=0,
            )
            self.db.add(user)
            try:
                self.db.flush()
            except IntegrityError as e:
                # Lost a race with a concurrent registration for the same email.
                raise EmailExistsError() from e
            refresh_token = self._open_session(user, user_agent, ip_address)
            verification_token = self.tokens.issue_secure_token()
            self.db.add(
                EmailVerificationToken(
                    user_id=user.id,
                    token=verification_token,
                    expires_at=self.tokens.email_verification_expiry(),
                    used=False,
                )
            )
            self.db.flush()

        logger.info("User registered", extra={"user_id": user.id})
        if self.notifier is not None:
            self.notifier.send_email_verification(user.email, verification_token)
        return AuthResponse(
            user=UserOut.model_validate(user),
            access_token=self._access_token(user),
            refresh_token=refresh_token,
            message=REGISTERED_MESSAGE,
        )

    def _reject_credentials(self, user: User | None) -> InvalidCredentialsError:
        """
        Build the single INVALID_CREDENTIALS error for unknown email and wrong password.

        A real account gets its failure recorded (and committed) first; an
        unknown email reports the count a first failure would.
        """
        attempts = 1
        if user is not None:
            attempts = record_failed_login(self.db, user, self.policy, self._now())
            self.db.commit()
        remaining = max(0, self.policy.max_login_attempts - attempts)
        return InvalidCredentialsError(remaining)

    def login(
        self,
        email: str,
        password: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> AuthResponse:
        """
        Authenticate by email and password.

        A locked account is rejected before the password is looked at. Each
        failure counts toward the lockout threshold; success clears it.
        """
        with self._transaction():
            user = self._user_by_email(email)
            if user is not None and is_locked(user, self._now()):
                logger.info("Login refused for locked account", extra={"user_id": user.id})
                raise AccountLockedError(as_utc(user.locked_until))

            stored_hash = (
                user.password_hash if user is not None else _dummy_hash(self.policy.bcrypt_rounds)
            )
            password_ok = verify_password(password, stored_hash)
            if user is None or not password_ok:
                raise self._reject_credentials(user)

            reset_failed_logins(self.db, user)
            refresh_token = self._open_session(user, user_agent, ip_address)

        logger.info("User logged in", extra={"user_id": user.id})
        return AuthResponse(
            user=UserOut.model_validate(user),
            access_token=self._access_token(user),
            refresh_token=refresh_token,
        )

    # Sessions

    def refresh(self, refresh_token: str) -> TokenPairResponse:
        """Exchange a refresh token for a new access token and a rotated refresh token."""
        with self._transaction():
            row = self.sessions.find_by_refresh_token(refresh_token)
            if row is None:
                raise InvalidRefreshTokenError()
            if as_utc(row.expires_at) < self._now():
                session_id = row.id
                self.sessions.delete_by_id(row.user_id, session_id)
                self.db.commit()
                logger.info("Expired refresh session removed", extra={"session_id": session_id})
                raise RefreshTokenExpiredError()

            new_refresh_token = self.tokens.issue_refresh_token()
            rotated = self.sessions.rotate(
                row.id,
                refresh_token,
                new_refresh_token,
                self.tokens.refresh_token_expiry(),
            )
            if not rotated:
                logger.warning(
                    "Refresh token already rotated or revoked",
                    extra={"session_id": row.id},
                )
                raise InvalidRefreshTokenError()
            user = row.user

        return TokenPairResponse(
            access_token=self._access_token(user),
            refresh_token=new_refresh_token,
        )

    def logout(self, user_id: str, refresh_token: str | None) -> MessageResponse:
        """End the caller's session for refresh_token; unknown tokens are ignored."""
        with self._transaction():
            if refresh_token:
                self.sessions.delete_by_refresh_token(user_id, refresh_token)
        return MessageResponse(message="Logged out successfully")

    def logout_all(self, user_id: str) -> MessageResponse:
        with self._transaction():
            revoked = self.sessions.delete_all(user_id)
        logger.info(
            "All sessions revoked",
            extra={"user_id": user_id, "sessions_revoked": revoked},
        )
        return MessageResponse(message="Logged out from all devices")

    def list_sessions(self, user_id: str) -> list[SessionOut]:
        return [SessionOut.model_validate(s) for s in self.sessions.list(user_id)]

    def revoke_session(self, user_id: str, session_id: str) -> MessageResponse:
        with self._transaction():
            if not self.sessions.delete_by_id(user_id, session_id):
                raise NotFoundError("Session not found", code="SESSION_NOT_FOUND")
        return MessageResponse(message="Session revoked successfully")

    # Single-use tokens

    def _load_single_use(
        self, model: type[SingleUseToken], token: str, label: str
    ) -> SingleUseToken:
        """Look up a reset/verification token; reject unknown, used or expired ones in that order."""
        row = self.db.query(model).filter(model.token == token).first()
        if row is None:
            raise InvalidTokenError(f"Invalid {label} token")
        if row.used:
            raise TokenUsedError(f"{label.capitalize()} token has already been used")
        if as_utc(row.expires_at) < self._now():
            raise TokenExpiredError(f"{label.capitalize()} token has expired")
        return row

    def _consume(self, model: type[SingleUseToken], row: SingleUseToken, label: str) -> None:
        """Flip used=false to true in one statement; losing the race means it was used."""
        result = self.db.execute(
            update(model)
            .where(model.id == row.id, model.used.is_(False))
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise TokenUsedError(f"{label.capitalize()} token has already been used")

    def verify_email(self, token: str) -> MessageResponse:
        with self._transaction():
            row = self._load_single_use(EmailVerificationToken, token, "verification")
            self._consume(EmailVerificationToken, row, "verification")
            self.db.execute(
                update(User)
                .where(User.id == row.user_id)
                .values(email_verified=self._now())
                .execution_options(synchronize_session=False)
            )
        logger.info("Email verified", extra={"user_id": row.user_id})
        return MessageResponse(message="Email verified successfully")

    def forgot_password(self, email: str) -> MessageResponse:
        """
        Issue a fresh password reset token if the account exists.

        The response never reveals whether it does. Prior unused tokens for
        the user are retired so only the newest one can be redeemed.
        """
        reset_token: str | None = None
        with self._transaction():
            user = self._user_by_email(email)
            if user is not None:
                self.db.execute(
                    update(PasswordResetToken)
                    .where(
                        PasswordResetToken.user_id == user.id,
                        PasswordResetToken.used.is_(False),
                    )
                    .values(used=True)
                    .execution_options(synchronize_session=False)
                )
                reset_token = self.tokens.issue_secure_token()
                self.db.add(
                    PasswordResetToken(
                        user_id=user.id,
                        token=reset_token,
                        expires_at=self.tokens.password_reset_expiry(),
                        used=False,
                    )
                )
                self.db.flush()

        if user is not None and reset_token is not None:
            logger.info("Password reset requested", extra={"user_id": user.id})
            if self.notifier is not None:
                self.notifier.send_password_reset(user.email, reset_token)
        return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

    def reset_password(self, token: str, new_password: str) -> MessageResponse:
        """
        Redeem a reset token: set the new password, clear lockout and revoke every session.

        All four writes commit together or not at all.
        """
        with self._transaction():
            row = self._load_single_use(PasswordResetToken, token, "reset")
            password_hash = hash_password(new_password, self.policy.bcrypt_rounds)
            self._consume(PasswordResetToken, row, "reset")
            self.db.execute(
                update(User)
                .where(User.id == row.user_id)
                .values(
                    password_hash=password_hash,
                    failed_login_attempts=0,
                    locked_until=None,
                )
                .execution_options(synchronize_session=False)
            )
            revoked = self.sessions.delete_all(row.user_id)

        logger.info(
            "Password reset completed",
            extra={"user_id": row.user_id, "sessions_revoked": revoked},
        )
        return MessageResponse(
            message="Password reset successfully. Please login with your new password."
        )

    # Authenticated account operations

    def _require_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        return user

    def me(self, user_id: str) -> UserOut:
        return UserOut.model_validate(self._require_user(user_id))

    def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> MessageResponse:
        """Replace the password after checking the current one. Other sessions stay active."""
        with self._transaction():
            user = self._require_user(user_id)
            if not verify_password(current_password, user.password_hash):
                raise InvalidPasswordError()
            user.password_hash = hash_password(new_password, self.policy.bcrypt_rounds)
        logger.info("Password changed", extra={"user_id": user_id})
        return MessageResponse(message="Password changed successfully")
