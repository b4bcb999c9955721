"""
api/routes/v1/auth.py -- Registration, login and current-identity endpoints.

Routes:
  POST /api/v1/auth/register  -- create an account, return token + public user
  POST /api/v1/auth/login     -- email/password login, return token + public user
  GET  /api/v1/auth/me        -- current user (requires Bearer token)

Security:
  POST /login and POST /register are rate-limited per client IP.
  authenticate() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Login answers every failure with the same 401 body, so the response never
  says whether the email exists.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AuthResponse, ErrorResponse, LoginRequest, MeResponse, RegisterRequest, UserResponse
from auth.dependencies import get_current_identity
from auth.errors import Forbidden
from auth.models import Identity, User
from auth.roles import DEFAULT_ROLE
from auth.service import authenticate, register_user
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings

# Auth policy:
# - POST /api/v1/auth/register: public -- gated by the SELF_REGISTRATION_* settings
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:       requires auth (get_current_identity)
router = APIRouter()

_INVALID_CREDENTIALS = "Invalid credentials"


def _token_response(request: Request, user: User, status_code: int) -> JSONResponse:
    issuer: TokenIssuer = request.app.state.token_issuer
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            token=issuer.issue(user),
            expires_in=issuer.lifetime_seconds,
            user=UserResponse.from_user(user),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit("20/minute")
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and log it in.

    Duplicate email -> 400 (raised by the store as DuplicateEmailError).
    Roles outside SELF_REGISTRATION_ROLES -> 403; admin is never among them.
    """
    settings: Settings = request.app.state.settings
    if not settings.self_registration_enabled:
        raise Forbidden("Self-registration is disabled.")

    role = body.role or DEFAULT_ROLE
    if role.value not in settings.self_registration_roles:
        raise Forbidden(f"Role '{role.value}' cannot be chosen at registration.")

    user_store: UserStore = request.app.state.user_store
    user = register_user(
        user_store,
        name=body.name,
        email=body.email,
        password=body.password,
        role=role,
        rounds=settings.bcrypt_rounds,
    )
    return _token_response(request, user, status_code=201)


@router.post("/auth/login", response_model=AuthResponse, responses={401: {"model": ErrorResponse}})
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and return a fresh token."""
    user_store: UserStore = request.app.state.user_store
    user = authenticate(user_store, body.email, body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(code="bad_credentials", message=_INVALID_CREDENTIALS).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp
    return _token_response(request, user, status_code=200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
async def me(identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return the public record of the currently authenticated user."""
    return MeResponse(user=UserResponse.from_public(identity.user))
