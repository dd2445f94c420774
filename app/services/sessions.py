"""Session registry: durable refresh-token sessions per user and device."""

from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from app.models import UserSession


class SessionRegistry:
    """
    CRUD over the sessions table, bound to one DB session.

    Methods never commit; the calling flow owns the transaction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def create(
        self,
        user_id: str,
        refresh_token: str,
        expires_at: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> UserSession:
        row = UserSession(
            user_id=user_id,
            refresh_token=refresh_token,
            expires_at=expires_at,
            user_agent=user_agent[:512] if user_agent else None,
            ip_address=ip_address,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def find_by_refresh_token(self, refresh_token: str) -> UserSession | None:
        return (
            self.db.query(UserSession)
            .filter(UserSession.refresh_token == refresh_token)
            .first()
        )

    def rotate(
        self,
        session_id: str,
        old_refresh_token: str,
        new_refresh_token: str,
        new_expires_at: datetime,
    ) -> bool:
        """
        Swap the refresh token and extend expiry in one conditional UPDATE.

        Returns False when the row no longer holds old_refresh_token (rotated
        or revoked by a concurrent request); the caller must then reject.
        """
        result = self.db.execute(
            update(UserSession)
            .where(
                UserSession.id == session_id,
                UserSession.refresh_token == old_refresh_token,
            )
            .values(refresh_token=new_refresh_token, expires_at=new_expires_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_by_refresh_token(self, user_id: str, refresh_token: str) -> int:
        result = self.db.execute(
            delete(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.refresh_token == refresh_token,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_all(self, user_id: str) -> int:
        result = self.db.execute(
            delete(UserSession)
            .where(UserSession.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_by_id(self, user_id: str, session_id: str) -> bool:
        """Delete one session only if it belongs to user_id."""
        result = self.db.execute(
            delete(UserSession)
            .where(UserSession.id == session_id, UserSession.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_expired(self, now: datetime) -> int:
        result = self.db.execute(
            delete(UserSession)
            .where(UserSession.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def list(self, user_id: str) -> list[UserSession]:
        """Sessions for user_id, newest first."""
        return (
            self.db.query(UserSession)
            .filter(UserSession.user_id == user_id)
            .order_by(UserSession.created_at.desc(), UserSession.id)
            .all()
        )
