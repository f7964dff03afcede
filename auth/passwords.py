"""
auth/passwords.py -- Password hashing and verification.

bcrypt directly, no passlib wrapper: passlib's wrap-bug detection builds a
password longer than 72 bytes, which bcrypt 4.x rejects outright.

hash_password() is only ever called when a password is first established
(registration). Login uses verify_password(), which never rehashes.
"""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10

# bcrypt only reads the first 72 bytes of a password. bcrypt 5 raises on
# longer input instead of ignoring the excess, so the cut is made here.
MAX_PASSWORD_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a bcrypt hash of the given plaintext password.

    A fresh salt is generated on every call, so two hashes of the same
    password never compare equal. The UTF-8 encoding is truncated to its
    first 72 bytes before hashing, so longer passwords are accepted and only
    their prefix counts.
    """
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. A malformed or empty hash
    yields False instead of an exception. The plaintext is truncated the
    same way as in hash_password().
    """
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Computed once at import so the first login is not measurably slower than
# the rest.
_DUMMY_HASH: str = hash_password("authgate_timing_dummy")


def equalize_timing(plain: str) -> None:
    """Spend one bcrypt verification on a dummy hash.

    Called when the username does not exist, so an unknown user and a wrong
    password cost the same and response time does not reveal which one it was.
    """
    verify_password(plain, _DUMMY_HASH)
