"""Unit tests for app.core.security: bcrypt hashing and the password policy."""

import unittest

from app.core.errors import PasswordHashError
from app.core.security import hash_password, password_policy_violations, verify_password


class TestHashPassword(unittest.TestCase):
    """hash_password produces salted bcrypt hashes that verify_password accepts."""

    def test_hash_verifies_with_same_password(self) -> None:
        hashed = hash_password("Passw0rd!", rounds=4)
        self.assertTrue(hashed.startswith("$2"))
        self.assertTrue(verify_password("Passw0rd!", hashed))

    def test_wrong_password_does_not_verify(self) -> None:
        hashed = hash_password("Passw0rd!", rounds=4)
        self.assertFalse(verify_password("passw0rd!", hashed))

    def test_same_password_hashes_differently(self) -> None:
        self.assertNotEqual(hash_password("Passw0rd!", rounds=4), hash_password("Passw0rd!", rounds=4))

    def test_rounds_are_encoded_in_hash(self) -> None:
        hashed = hash_password("Passw0rd!", rounds=5)
        self.assertEqual(hashed.split("$")[2], "05")


class TestVerifyPasswordFailures(unittest.TestCase):
    """A corrupt stored hash is an internal error, never a silent mismatch."""

    def test_malformed_hash_raises(self) -> None:
        with self.assertRaises(PasswordHashError):
            verify_password("Passw0rd!", "not-a-bcrypt-hash")

    def test_empty_hash_raises(self) -> None:
        with self.assertRaises(PasswordHashError):
            verify_password("Passw0rd!", "")


class TestPasswordPolicy(unittest.TestCase):
    """At least 8 chars with an uppercase letter, a lowercase letter and a digit."""

    def test_strong_password_passes(self) -> None:
        self.assertEqual(password_policy_violations("Passw0rd!"), [])

    def test_short_password(self) -> None:
        problems = password_policy_violations("Pa0")
        self.assertIn("Password must be at least 8 characters", problems)

    def test_missing_uppercase(self) -> None:
        self.assertEqual(
            password_policy_violations("passw0rd!"),
            ["Password must contain at least one uppercase letter"],
        )

    def test_missing_lowercase(self) -> None:
        self.assertEqual(
            password_policy_violations("PASSW0RD!"),
            ["Password must contain at least one lowercase letter"],
        )

    def test_missing_digit(self) -> None:
        self.assertEqual(
            password_policy_violations("Password!"),
            ["Password must contain at least one number"],
        )

    def test_too_long(self) -> None:
        problems = password_policy_violations("Aa1" + "x" * 200)
        self.assertIn("Password must be at most 128 characters", problems)


if __name__ == "__main__":
    unittest.main()
