"""Lockout policy: failed-login counting and temporary account locks."""

import logging
from datetime import datetime

from sqlalchemy import and_, case, update
from sqlalchemy.orm import Session

from app.core.tokens import AuthPolicy, as_utc
from app.models import User

logger = logging.getLogger(__name__)


def is_locked(user: User, now: datetime) -> bool:
    """True while locked_until is set and still in the future."""
    if user.locked_until is None:
        return False
    return as_utc(user.locked_until) > now


def record_failed_login(
    session: Session,
    user: User,
    policy: AuthPolicy,
    now: datetime,
) -> int:
    """
    Count one failed password check and lock the account at the threshold.

    Runs as a single UPDATE ... RETURNING so concurrent failures cannot lose
    increments. A lock that has already lapsed restarts the count at 1.
    Returns the new failed_login_attempts value.
    """
    lapsed = and_(User.locked_until.is_not(None), User.locked_until <= now)
    new_count = case((lapsed, 1), else_=User.failed_login_attempts + 1)
    stmt = (
        update(User)
        .where(User.id == user.id)
        .values(
            failed_login_attempts=new_count,
            locked_until=case(
                (new_count >= policy.max_login_attempts, now + policy.lockout_duration),
                else_=None,
            ),
        )
        .returning(User.failed_login_attempts, User.locked_until)
        .execution_options(synchronize_session=False)
    )
    attempts, locked_until = session.execute(stmt).one()
    session.expire(user)
    if locked_until is not None:
        logger.warning(
            "Account locked after repeated failed logins",
            extra={"user_id": user.id, "attempts": attempts},
        )
    else:
        logger.info(
            "Failed login attempt",
            extra={"user_id": user.id, "attempts": attempts},
        )
    return attempts


def reset_failed_logins(session: Session, user: User) -> None:
    """Zero the failure counter and clear any lock (successful login or reset)."""
    session.execute(
        update(User)
        .where(User.id == user.id)
        .values(failed_login_attempts=0, locked_until=None)
        .execution_options(synchronize_session=False)
    )
    session.expire(user)
