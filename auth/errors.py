"""
auth/errors.py -- Exception taxonomy for the auth layer.

AuthError subclasses carry the HTTP status, a machine-readable code and a
client-safe message. api/main.py registers one exception handler for the
whole family, so auth code raises these and never builds responses itself.

TokenError subclasses are internal: the Auth Gate converts every one of them
into Unauthenticated, but logs the concrete class so expired, tampered and
garbage tokens stay distinguishable server-side.
"""

from __future__ import annotations


class AuthError(Exception):
    status_code = 500
    code = "internal_error"
    message = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthenticated(AuthError):
    """Missing, invalid or expired token, unknown subject, or bad login."""

    status_code = 401
    code = "unauthenticated"
    message = "Authentication required."


class Forbidden(AuthError):
    """Valid identity, insufficient role."""

    status_code = 403
    code = "forbidden"
    message = "You do not have permission to perform this action."


class Conflict(AuthError):
    status_code = 400
    code = "conflict"
    message = "The request conflicts with existing data."


class DuplicateEmailError(Conflict):
    code = "email_taken"
    message = "User with this email already exists."


class StoreError(AuthError):
    """The credential store failed for a reason other than a constraint violation.

    The message is kept for server logs; the exception handler never returns
    it to the client.
    """

    status_code = 500
    code = "store_error"


# ---------------------------------------------------------------------------
# Token verification failures
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for token verification failures."""


class ExpiredTokenError(TokenError):
    pass


class InvalidSignatureError(TokenError):
    pass


class MalformedTokenError(TokenError):
    pass


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


class MalformedHashError(ValueError):
    """A stored password hash is not a parseable bcrypt hash."""
