"""Unit tests for app.core.tokens: JWT access tokens, opaque tokens and expiry policy."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import SecretStr

from app.core.config import Settings
from app.core.roles import Role
from app.core.tokens import AuthPolicy, TokenService, as_utc
from tests.support import TEST_POLICY, TEST_SECRET, FakeClock


class TestAccessToken(unittest.TestCase):
    """issue_access_token / verify_access_token round trip and fail-closed behaviour."""

    def setUp(self) -> None:
        self.tokens = TokenService(TEST_POLICY)

    def test_round_trip_carries_identity(self) -> None:
        token = self.tokens.issue_access_token("user-1", "a@x.com", Role.EDITOR)
        payload = self.tokens.verify_access_token(token)
        self.assertIsNotNone(payload)
        self.assertEqual(payload.user_id, "user-1")
        self.assertEqual(payload.email, "a@x.com")
        self.assertIs(payload.role, Role.EDITOR)

    def test_expiry_is_fifteen_minutes_by_default(self) -> None:
        token = self.tokens.issue_access_token("user-1", "a@x.com", Role.VIEWER)
        claims = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
        self.assertEqual(claims["exp"] - claims["iat"], 15 * 60)

    def test_tampered_token_is_invalid(self) -> None:
        token = self.tokens.issue_access_token("user-1", "a@x.com", Role.VIEWER)
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        self.assertIsNone(self.tokens.verify_access_token(f"{header}.{payload}.{flipped}"))

    def test_wrong_secret_is_invalid(self) -> None:
        other = TokenService(AuthPolicy(jwt_secret="another-secret-that-is-long-enough-too"))
        token = other.issue_access_token("user-1", "a@x.com", Role.ADMIN)
        self.assertIsNone(self.tokens.verify_access_token(token))

    def test_garbage_is_invalid(self) -> None:
        self.assertIsNone(self.tokens.verify_access_token("not.a.jwt"))
        self.assertIsNone(self.tokens.verify_access_token(""))

    def test_expired_token_is_invalid(self) -> None:
        clock = FakeClock(datetime.now(UTC) - timedelta(hours=1))
        stale = TokenService(TEST_POLICY, clock=clock)
        token = stale.issue_access_token("user-1", "a@x.com", Role.VIEWER)
        self.assertIsNone(self.tokens.verify_access_token(token))

    def test_unknown_role_is_invalid(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "user-1", "email": "a@x.com", "role": "SUPERUSER", "iat": now,
             "exp": now + timedelta(minutes=5)},
            TEST_SECRET,
            algorithm="HS256",
        )
        self.assertIsNone(self.tokens.verify_access_token(token))

    def test_missing_exp_is_invalid(self) -> None:
        token = jwt.encode(
            {"sub": "user-1", "email": "a@x.com", "role": "ADMIN", "iat": datetime.now(UTC)},
            TEST_SECRET,
            algorithm="HS256",
        )
        self.assertIsNone(self.tokens.verify_access_token(token))

    def test_unsigned_token_is_invalid(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "user-1", "email": "a@x.com", "role": "ADMIN", "iat": now,
             "exp": now + timedelta(minutes=5)},
            None,
            algorithm="none",
        )
        self.assertIsNone(self.tokens.verify_access_token(token))


class TestOpaqueTokens(unittest.TestCase):
    """Refresh and single-use tokens are random hex strings."""

    def test_refresh_token_is_128_hex_chars(self) -> None:
        token = TokenService.issue_refresh_token()
        self.assertEqual(len(token), 128)
        int(token, 16)

    def test_secure_token_is_64_hex_chars(self) -> None:
        token = TokenService.issue_secure_token()
        self.assertEqual(len(token), 64)
        int(token, 16)

    def test_tokens_do_not_repeat(self) -> None:
        tokens = {TokenService.issue_refresh_token() for _ in range(50)}
        self.assertEqual(len(tokens), 50)


class TestExpiryPolicy(unittest.TestCase):
    """Expiry helpers add the configured lifetimes to the service clock."""

    def setUp(self) -> None:
        self.clock = FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=UTC))
        self.tokens = TokenService(TEST_POLICY, clock=self.clock)

    def test_defaults(self) -> None:
        self.assertEqual(self.tokens.refresh_token_expiry(), datetime(2026, 1, 8, 12, 0, tzinfo=UTC))
        self.assertEqual(self.tokens.password_reset_expiry(), datetime(2026, 1, 1, 13, 0, tzinfo=UTC))
        self.assertEqual(self.tokens.email_verification_expiry(), datetime(2026, 1, 2, 12, 0, tzinfo=UTC))
        self.assertEqual(self.tokens.lockout_expiry(), datetime(2026, 1, 1, 12, 15, tzinfo=UTC))

    def test_policy_from_settings(self) -> None:
        settings = Settings(
            JWT_SECRET=SecretStr(TEST_SECRET),
            ACCESS_TOKEN_EXPIRE_MINUTES=5,
            REFRESH_TOKEN_EXPIRE_DAYS=30,
            MAX_LOGIN_ATTEMPTS=3,
            LOCKOUT_DURATION_MINUTES=60,
        )
        policy = AuthPolicy.from_settings(settings)
        self.assertEqual(policy.jwt_secret, TEST_SECRET)
        self.assertEqual(policy.access_token_ttl, timedelta(minutes=5))
        self.assertEqual(policy.refresh_token_ttl, timedelta(days=30))
        self.assertEqual(policy.max_login_attempts, 3)
        self.assertEqual(policy.lockout_duration, timedelta(hours=1))


class TestAsUtc(unittest.TestCase):
    def test_naive_is_treated_as_utc(self) -> None:
        self.assertEqual(as_utc(datetime(2026, 1, 1)), datetime(2026, 1, 1, tzinfo=UTC))

    def test_aware_is_converted(self) -> None:
        value = datetime(2026, 1, 1, 12, tzinfo=UTC)
        self.assertEqual(as_utc(value), value)


if __name__ == "__main__":
    unittest.main()
