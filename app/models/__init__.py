"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.session import UserSession
from app.models.token import EmailVerificationToken, PasswordResetToken
from app.models.user import User

__all__ = [
    "Base",
    "EmailVerificationToken",
    "PasswordResetToken",
    "User",
    "UserSession",
]
