"""Data retention: purge expired sessions and spent single-use tokens."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models import EmailVerificationToken, PasswordResetToken
from app.services.sessions import SessionRegistry

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_retention(
    session: Session,
    settings: "Settings",
    now: datetime | None = None,
) -> tuple[int, int]:
    """
    Delete expired sessions, and reset/verification tokens that are used or expired.

    Returns (sessions_deleted, tokens_deleted). Idempotent: safe to run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return (0, 0)

    cutoff = now or datetime.now(timezone.utc)
    sessions_deleted = SessionRegistry(session).delete_expired(cutoff)
    tokens_deleted = 0
    for model in (PasswordResetToken, EmailVerificationToken):
        tokens_deleted += (
            session.query(model)
            .filter(or_(model.used.is_(True), model.expires_at < cutoff))
            .delete(synchronize_session=False)
        )
    session.commit()

    if sessions_deleted or tokens_deleted:
        logger.info(
            "Retention run: cutoff=%s, sessions_deleted=%s, tokens_deleted=%s",
            cutoff.isoformat(),
            sessions_deleted,
            tokens_deleted,
        )
    return (sessions_deleted, tokens_deleted)
