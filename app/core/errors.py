"""Domain errors raised by services and rendered as the JSON error envelope."""

from datetime import datetime
from typing import Any


class ApiError(Exception):
    """
    Base for errors that map to an HTTP response.

    status_code and code are class defaults; extra holds additional keys placed
    next to code and message in the error body (e.g. remainingAttempts).
    """

    status_code: int = 400
    code: str = "ERROR"
    message: str = "Request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)


class ValidationFailed(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid request data"


class InvalidCredentialsError(ApiError):
    """Unknown email or wrong password; both render the same body."""

    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"

    def __init__(self, remaining_attempts: int) -> None:
        super().__init__(extra={"remainingAttempts": remaining_attempts})
        self.remaining_attempts = remaining_attempts


class AccountLockedError(ApiError):
    status_code = 423
    code = "ACCOUNT_LOCKED"

    def __init__(self, locked_until: datetime) -> None:
        iso = locked_until.isoformat()
        super().__init__(
            f"Account is locked. Try again after {iso}",
            extra={"lockedUntil": iso},
        )
        self.locked_until = locked_until


class EmailExistsError(ApiError):
    status_code = 400
    code = "EMAIL_EXISTS"
    message = "Email already registered"


class UnauthorizedError(ApiError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Authentication required"


class ForbiddenError(ApiError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Insufficient permissions"


class InvalidRefreshTokenError(ApiError):
    status_code = 401
    code = "INVALID_REFRESH_TOKEN"
    message = "Invalid refresh token"


class RefreshTokenExpiredError(ApiError):
    status_code = 401
    code = "REFRESH_TOKEN_EXPIRED"
    message = "Refresh token has expired"


class InvalidTokenError(ApiError):
    status_code = 400
    code = "INVALID_TOKEN"
    message = "Invalid token"


class TokenUsedError(ApiError):
    status_code = 400
    code = "TOKEN_USED"
    message = "Token has already been used"


class TokenExpiredError(ApiError):
    status_code = 400
    code = "TOKEN_EXPIRED"
    message = "Token has expired"


class InvalidPasswordError(ApiError):
    status_code = 400
    code = "INVALID_PASSWORD"
    message = "Current password is incorrect"


class InvalidOperationError(ApiError):
    status_code = 400
    code = "INVALID_OPERATION"
    message = "Operation not allowed"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class PasswordHashError(Exception):
    """Hashing or verification failed; never treated as a password mismatch."""
