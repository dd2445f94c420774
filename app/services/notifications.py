"""Outbound account emails. No mail transport is wired; messages are logged."""

import logging

from app.core.config import Settings

logger = logging.getLogger(__name__)


class Notifier:
    """Delivers verification and password-reset tokens to the account owner."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _deliver(self, kind: str, email: str, token: str) -> None:
        extra: dict[str, str] = {"kind": kind, "email_domain": email.rsplit("@", 1)[-1]}
        # Token values are only ever printed for local development.
        if self.settings.APP_ENV == "dev":
            extra["token"] = token
        logger.info("Account email queued", extra=extra)

    def send_email_verification(self, email: str, token: str) -> None:
        self._deliver("email_verification", email, token)

    def send_password_reset(self, email: str, token: str) -> None:
        self._deliver("password_reset", email, token)
