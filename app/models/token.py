"""ORM models for single-use tokens: password reset and email verification."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from app.models.base import Base
from app.models.user import new_id


class _SingleUseTokenMixin:
    """Shared columns: owner, opaque token, expiry and the used flag."""

    id = Column(String(36), primary_key=True, default=new_id)
    token = Column(String(255), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class PasswordResetToken(_SingleUseTokenMixin, Base):
    __tablename__ = "password_reset_tokens"

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class EmailVerificationToken(_SingleUseTokenMixin, Base):
    __tablename__ = "email_verification_tokens"

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
