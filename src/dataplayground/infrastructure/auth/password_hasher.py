"""Argon2id password hashing."""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_argon2 = PasswordHasher()

# Checked on logins for unknown emails so they cost one verification too.
DUMMY_PASSWORD_HASH = _argon2.hash("dataplayground-dummy-password")


def hash_password(password: str) -> str:
    return _argon2.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Return whether ``password`` matches ``hashed``.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return _argon2.verify(hashed, password)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(hashed: str) -> bool:
    """True when ``hashed`` was produced with weaker parameters than the current ones."""
    return _argon2.check_needs_rehash(hashed)
