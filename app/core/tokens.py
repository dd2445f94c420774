"""
Token service: signed access tokens, opaque bearer tokens and their expiry policy.

Access tokens are self-contained JWTs; refresh, password-reset and
email-verification tokens are random strings that only mean something when
looked up in the database.
"""

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from app.core.config import Settings
from app.core.roles import Role

REFRESH_TOKEN_BYTES = 64
SECURE_TOKEN_BYTES = 32


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the store as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class AuthPolicy:
    """Secrets and timing constants for the auth core, injectable in tests."""

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_ttl: timedelta = timedelta(minutes=15)
    refresh_token_ttl: timedelta = timedelta(days=7)
    password_reset_ttl: timedelta = timedelta(hours=1)
    email_verification_ttl: timedelta = timedelta(hours=24)
    lockout_duration: timedelta = timedelta(minutes=15)
    max_login_attempts: int = 5
    bcrypt_rounds: int = 12

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthPolicy":
        return cls(
            jwt_secret=settings.JWT_SECRET.get_secret_value(),
            jwt_algorithm=settings.JWT_ALGORITHM,
            access_token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_token_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            password_reset_ttl=timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS),
            email_verification_ttl=timedelta(
                hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS
            ),
            lockout_duration=timedelta(minutes=settings.LOCKOUT_DURATION_MINUTES),
            max_login_attempts=settings.MAX_LOGIN_ATTEMPTS,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        )


@dataclass(frozen=True)
class TokenPayload:
    """Identity carried by a verified access token."""

    user_id: str
    email: str
    role: Role


class TokenService:
    """Issue and verify access tokens; mint opaque tokens; compute expiries."""

    def __init__(
        self,
        policy: AuthPolicy,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.policy = policy
        self.clock = clock

    def issue_access_token(self, user_id: str, email: str, role: Role) -> str:
        """Create a JWT access token with sub, email, role, iat and exp."""
        now = self.clock()
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "email": email,
            "role": Role(role).value,
            "iat": now,
            "exp": now + self.policy.access_token_ttl,
        }
        return jwt.encode(
            payload,
            self.policy.jwt_secret,
            algorithm=self.policy.jwt_algorithm,
        )

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """
        Decode and validate a JWT access token.

        Returns None for anything short of a fully valid token: bad signature,
        malformed input, expiry, missing claims or an unknown role.
        """
        try:
            claims = jwt.decode(
                token,
                self.policy.jwt_secret,
                algorithms=[self.policy.jwt_algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.PyJWTError:
            return None
        sub = claims.get("sub")
        email = claims.get("email")
        if not isinstance(sub, str) or not sub or not isinstance(email, str):
            return None
        try:
            role = Role(claims.get("role"))
        except ValueError:
            return None
        return TokenPayload(user_id=sub, email=email, role=role)

    @staticmethod
    def issue_refresh_token() -> str:
        return secrets.token_hex(REFRESH_TOKEN_BYTES)

    @staticmethod
    def issue_secure_token() -> str:
        """Opaque token shared by password reset and email verification."""
        return secrets.token_hex(SECURE_TOKEN_BYTES)

    def refresh_token_expiry(self) -> datetime:
        return self.clock() + self.policy.refresh_token_ttl

    def password_reset_expiry(self) -> datetime:
        return self.clock() + self.policy.password_reset_ttl

    def email_verification_expiry(self) -> datetime:
        return self.clock() + self.policy.email_verification_ttl

    def lockout_expiry(self) -> datetime:
        return self.clock() + self.policy.lockout_duration

