"""Password hashing and password policy for the credential store."""

import re

import bcrypt

from app.core.config import settings
from app.core.errors import PasswordHashError

# Min/max lengths for name and password validation.
NAME_MIN_LEN = 2
NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")


def password_policy_violations(password: str) -> list[str]:
    """Return human-readable reasons the password is rejected (empty when acceptable)."""
    problems: list[str] = []
    if len(password) < PASSWORD_MIN_LEN:
        problems.append(f"Password must be at least {PASSWORD_MIN_LEN} characters")
    if len(password) > PASSWORD_MAX_LEN:
        problems.append(f"Password must be at most {PASSWORD_MAX_LEN} characters")
    if not _UPPER.search(password):
        problems.append("Password must contain at least one uppercase letter")
    if not _LOWER.search(password):
        problems.append("Password must contain at least one lowercase letter")
    if not _DIGIT.search(password):
        problems.append("Password must contain at least one number")
    return problems


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    try:
        return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")
    except (ValueError, TypeError) as e:
        raise PasswordHashError("Password hashing failed") from e


def verify_password(plain_password: str, hashed: str) -> bool:
    """
    Verify a plain password against a stored hash.

    Raises PasswordHashError when the stored hash is unusable; a broken hash is
    an internal fault, not a wrong password.
    """
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError) as e:
        raise PasswordHashError("Password verification failed") from e
