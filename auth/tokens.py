"""
auth/tokens.py -- JWT issuing and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry only the subject (user id), iat
       and exp. The role is not a claim: the Auth Gate reloads the
       user on every request, so a role change takes effect immediately
       instead of when the old token expires.

  Secret: passed into TokenIssuer at construction (see from_settings()).
       Nothing in this module reads the environment. Rotating SECRET_KEY
       invalidates every outstanding token -- the price of staying stateless.

  Failures: verify() raises one of three TokenError subclasses. Callers treat
       them identically (401) but log the class name.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from calendar import timegm
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError

from auth.errors import ExpiredTokenError, InvalidSignatureError, MalformedTokenError

if TYPE_CHECKING:
    from auth.models import User
    from core.config import Settings

_ALGORITHM = "HS256"

DEFAULT_LIFETIME_SECONDS = 24 * 60 * 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_timestamp(moment: datetime) -> int:
    return timegm(moment.utctimetuple())


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified token payload."""

    subject: int
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """Issues and verifies signed, time-limited access tokens.

    Usage:
        issuer = TokenIssuer.from_settings(settings)
        token = issuer.issue(user)
        claims = issuer.verify(token)   # raises TokenError subclasses

    clock is injectable. It stamps iat/exp on issue and is the "now" that
    verify() checks exp against, so tests can move time forward without
    sleeping.
    """

    def __init__(
        self,
        secret_key: str,
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a non-empty secret key.")
        if lifetime_seconds <= 0:
            raise ValueError("Token lifetime must be positive.")
        self._secret_key = secret_key
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(settings.secret_key, lifetime_seconds=settings.token_lifetime_seconds)

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, user: User) -> str:
        """Encode a signed JWT asserting the user's identity."""
        if user.id is None:
            raise ValueError("Cannot issue a token for a user without an id.")
        return self.issue_for(user.id)

    def issue_for(self, user_id: int) -> str:
        issued_at = self._clock()
        expires_at = issued_at + timedelta(seconds=self.lifetime_seconds)
        payload = {
            "sub": str(user_id),
            "iat": _to_timestamp(issued_at),
            "exp": _to_timestamp(expires_at),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: str) -> TokenClaims:
        """Verify signature and expiry, then return the decoded claims.

        Raises:
            MalformedTokenError:   not a parseable JWT, or sub/iat/exp missing or invalid.
            InvalidSignatureError: parseable, but not signed with our key/algorithm.
            ExpiredTokenError:     signature valid, exp in the past.

        The structure check runs first so a garbage string is reported as
        malformed rather than as a signature mismatch. jose checks the
        signature; expiry is compared against the issuer's clock.
        """
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedTokenError(str(exc)) from exc

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTClaimsError as exc:
            raise MalformedTokenError(str(exc)) from exc
        except JWTError as exc:
            raise InvalidSignatureError(str(exc)) from exc

        try:
            subject = int(payload["sub"])
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
            raise MalformedTokenError(f"Invalid claim value: {exc}") from exc
        if self._clock() > expires_at:
            raise ExpiredTokenError("Signature has expired.")
        return TokenClaims(subject=subject, issued_at=issued_at, expires_at=expires_at)
