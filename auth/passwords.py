"""
auth/passwords.py -- bcrypt password hashing and verification.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

bcrypt only reads the first 72 bytes of its input, and newer releases raise
instead of truncating. Both functions truncate explicitly so hashing and
verification agree on every bcrypt version.
"""

from __future__ import annotations

import re

import bcrypt

from auth.errors import MalformedHashError

DEFAULT_ROUNDS = 10

_BCRYPT_MAX_BYTES = 72

# $2a$/$2b$/$2y$ prefix, two-digit cost, 22-char salt + 31-char digest.
_BCRYPT_HASH_RE = re.compile(r"^\$2[abxy]\$\d{2}\$[./A-Za-z0-9]{53}$")


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a bcrypt hash of the given plaintext password.

    gensalt() draws a fresh random salt on every call, so hashing the same
    password twice yields two different strings that both verify.
    """
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A wrong password returns False. A value that is not a bcrypt hash at all
    raises MalformedHashError -- that is a data problem, not a failed login,
    and callers decide how to report it. checkpw() compares in constant time.
    """
    if not isinstance(hashed, str) or not _BCRYPT_HASH_RE.match(hashed):
        raise MalformedHashError("Stored password hash is not a bcrypt hash.")
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError as exc:
        raise MalformedHashError(str(exc)) from exc


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Login runs verify_password() against this hash
# when the email is unknown, so response time does not reveal whether an
# account exists.
DUMMY_HASH: str = hash_password("smartsprint_timing_dummy")
