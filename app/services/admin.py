"""Admin user management: listing accounts and changing roles."""

import logging

from sqlalchemy.orm import Session

from app.core.errors import InvalidOperationError, NotFoundError
from app.core.roles import Role
from app.models import User

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[User]:
    """All users, newest first."""
    return db.query(User).order_by(User.created_at.desc(), User.email).all()


def update_user_role(db: Session, actor_id: str, user_id: str, role: Role) -> User:
    """
    Set another user's role.

    Admins cannot change their own role, which keeps at least the acting admin
    in place. Tokens already issued keep the old role until they expire.
    """
    if user_id == actor_id:
        raise InvalidOperationError("Cannot change your own role")
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    previous = Role(user.role)
    user.role = role
    db.commit()
    logger.info(
        "User role changed",
        extra={
            "actor_id": actor_id,
            "user_id": user_id,
            "from_role": previous.value,
            "to_role": Role(role).value,
        },
    )
    db.refresh(user)
    return user
