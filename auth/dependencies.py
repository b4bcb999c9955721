"""
auth/dependencies.py -- FastAPI Depends() helpers: the Auth Gate and the
Access Policy Guard.

Auth Gate (get_current_identity), per request:
  NoToken -> TokenPresent -> Verified | Rejected
  1. Read "Authorization: Bearer <token>". Missing/other scheme -> 401.
  2. TokenIssuer.verify(). Any TokenError -> 401 (class name logged).
  3. Load the user by token subject. Exactly one store lookup, no cache.
     Unknown subject (deleted user) -> 401.
  4. Attach Identity to request.state.identity and return it.

Access Policy Guard (require_role / authorize):
  Runs strictly after the gate. Role in the allowed set -> pass; otherwise,
  or if no identity is attached at all, 403.

"Own resource" exceptions (a user acting on their own record) are layered on
top by routes via ensure_self_or_role(), never folded into the guard.

The store and the token issuer come from request.app.state; this module reads
no configuration of its own.

Layer rule: auth/dependencies.py may import from fastapi (for Depends/Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from fastapi import Depends, Request

from auth.errors import Forbidden, TokenError, Unauthenticated
from auth.models import Identity
from auth.roles import Role
from auth.store import UserStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("smartsprint.auth")

_BEARER_PREFIX = "bearer "


def extract_bearer_token(header: str | None) -> str | None:
    """Return the token from an Authorization header value, or None.

    The scheme name is matched case-insensitively (RFC 7235). An empty token
    after the scheme counts as no token.
    """
    if not header:
        return None
    if header[: len(_BEARER_PREFIX)].lower() != _BEARER_PREFIX:
        return None
    token = header[len(_BEARER_PREFIX) :].strip()
    return token or None


def get_current_identity(request: Request) -> Identity:
    """Authenticate the request via Bearer token. Raises Unauthenticated (401).

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: Identity = Depends(get_current_identity)): ...
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise Unauthenticated("No authentication token provided.")

    issuer: TokenIssuer = request.app.state.token_issuer
    try:
        claims = issuer.verify(token)
    except TokenError as exc:
        logger.info(
            "Token rejected (%s) on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
        )
        raise Unauthenticated("Invalid authentication token.") from exc

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(claims.subject)
    if user is None:
        logger.info("Token subject %s no longer exists", claims.subject)
        raise Unauthenticated("Invalid authentication token.")

    identity = Identity(user_id=user.id, role=user.role, user=user.to_public())
    request.state.identity = identity
    return identity


def authorize(identity: Identity | None, allowed_roles: Iterable[Role | str]) -> Identity:
    """Allow identity if its role is in allowed_roles. Raises Forbidden otherwise.

    A missing identity means a route ran the guard without the gate. That is a
    wiring bug, but it still fails closed with 403 instead of crashing.
    """
    allowed = {Role(r).value for r in allowed_roles}
    if identity is None:
        logger.error("Role check ran without an authenticated identity")
        raise Forbidden()
    if identity.role not in allowed:
        raise Forbidden()
    return identity


def require_role(allowed_roles: Iterable[Role | str]) -> Callable[..., Identity]:
    """Build a dependency that runs the Auth Gate, then the role check.

    Role labels are validated here, at route-definition time, so a typo in
    a route's role list fails at import instead of silently denying everyone.

        @router.get("/users")
        async def route(identity: Identity = Depends(require_role([Role.admin]))): ...
    """
    allowed = frozenset(Role(r) for r in allowed_roles)

    def role_guard(identity: Identity = Depends(get_current_identity)) -> Identity:
        return authorize(identity, allowed)

    return role_guard


def ensure_self_or_role(identity: Identity, owner_id: int, allowed_roles: Iterable[Role | str]) -> None:
    """Allow the owner of a resource regardless of role; otherwise apply the role check."""
    if identity.user_id == owner_id:
        return
    authorize(identity, allowed_roles)
