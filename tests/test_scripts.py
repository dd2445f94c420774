"""Tests for the create_user bootstrap command and account email notifications."""

import unittest
from unittest.mock import MagicMock, patch

from app.core.roles import Role
from app.core.security import verify_password
from app.models import User
from app.scripts import create_user
from app.services.notifications import Notifier
from tests.support import STRONG_PASSWORD, make_engine, make_session_factory


class TestCreateUser(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.session_factory = make_session_factory(self.engine)
        patcher = patch.object(create_user, "SessionLocal", self.session_factory)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self.engine.dispose()

    def test_creates_admin(self) -> None:
        code = create_user.main(["Root@X.com", "Site Admin", STRONG_PASSWORD, "ADMIN"])
        self.assertEqual(code, 0)
        with self.session_factory() as db:
            user = db.query(User).one()
            self.assertEqual(user.email, "root@x.com")
            self.assertEqual(user.role, Role.ADMIN)
            self.assertTrue(verify_password(STRONG_PASSWORD, user.password_hash))

    def test_role_defaults_to_viewer(self) -> None:
        self.assertEqual(create_user.main(["v@x.com", "Viewer", STRONG_PASSWORD]), 0)
        with self.session_factory() as db:
            self.assertEqual(db.query(User).one().role, Role.VIEWER)

    def test_refuses_duplicates(self) -> None:
        create_user.main(["v@x.com", "Viewer", STRONG_PASSWORD])
        self.assertEqual(create_user.main(["V@x.com", "Viewer", STRONG_PASSWORD]), 1)

    def test_rejects_weak_password_and_bad_email(self) -> None:
        self.assertEqual(create_user.main(["v@x.com", "Viewer", "weak"]), 1)
        self.assertEqual(create_user.main(["not-an-email", "Viewer", STRONG_PASSWORD]), 1)
        with self.session_factory() as db:
            self.assertEqual(db.query(User).count(), 0)


class TestNotifier(unittest.TestCase):
    def make(self, env: str) -> Notifier:
        settings = MagicMock()
        settings.APP_ENV = env
        return Notifier(settings)

    def test_dev_logs_token(self) -> None:
        with self.assertLogs("app.services.notifications", level="INFO") as logs:
            self.make("dev").send_password_reset("a@x.com", "tok123")
        record = logs.records[0]
        self.assertEqual(record.kind, "password_reset")
        self.assertEqual(record.email_domain, "x.com")
        self.assertEqual(record.token, "tok123")

    def test_prod_never_logs_token(self) -> None:
        with self.assertLogs("app.services.notifications", level="INFO") as logs:
            self.make("prod").send_email_verification("a@x.com", "tok123")
        record = logs.records[0]
        self.assertEqual(record.kind, "email_verification")
        self.assertFalse(hasattr(record, "token"))


if __name__ == "__main__":
    unittest.main()
