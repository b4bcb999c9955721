"""
api/main.py -- FastAPI application factory for SmartSprint.

Exposes registration, login and user administration over REST/JSON for the
SmartSprint web client.

Run with:  uvicorn asgi:app --reload
           python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  4. log_requests          -- one latency line per request

Configuration is passed in, not looked up: create_app(settings) stores the
Settings on app.state and the lifespan builds the UserStore and TokenIssuer
from it. Tests hand in their own Settings; asgi.py uses get_settings().
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.errors import AuthError, StoreError
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("smartsprint.api")


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the credential store and build the token issuer for the app's lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The signing secret and role table are read-only after this point,
    so requests share no mutable auth state beyond the store.
    """
    settings: Settings = app.state.settings
    logger.info("SmartSprint API starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.token_issuer = TokenIssuer.from_settings(settings)
    logger.info(
        "Auth initialized (token lifetime=%ds, bcrypt rounds=%d, has_users=%s)",
        settings.token_lifetime_seconds,
        settings.bcrypt_rounds,
        app.state.user_store.has_users(),
    )

    yield

    app.state.user_store.close()
    logger.info("SmartSprint API shutdown complete")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=message, detail=detail).model_dump(),
    )


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map the auth error taxonomy to its HTTP status.

    StoreError messages can contain SQL; they are logged with the traceback
    and replaced with a generic message in the response.
    """
    if isinstance(exc, StoreError):
        logger.error("Store error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error(exc.status_code, exc.code, "An unexpected error occurred.")
    return _error(exc.status_code, exc.code, exc.message)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", detail=str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with a structured error when the body or params fail validation."""
    return _error(400, "validation_error", "Request validation failed.", detail=str(exc.errors()))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with detail={"code": ..., "message": ...}.
    When detail is already a structured dict, use it directly rather than
    stringifying it -- str(dict) produces a Python repr, not JSON.
    """
    if isinstance(exc.detail, dict):
        return _error(
            exc.status_code,
            exc.detail.get("code", f"http_{exc.status_code}"),
            exc.detail.get("message", ""),
        )
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the server log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


async def health(request: Request) -> HealthResponse:
    """Return API liveness, version and a database round-trip check.

    No authentication and no rate limit -- load balancers must not be
    throttled or asked for credentials.
    """
    user_store: UserStore = request.app.state.user_store
    database = "ok" if user_store.ping() else "error"
    return HealthResponse(version=__version__, components={"app": "ok", "database": database})


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the SmartSprint ASGI app.

    settings defaults to get_settings(), which raises if SECRET_KEY is not
    configured -- the process refuses to start rather than run unsigned.
    """
    settings = settings or get_settings()
    logging.getLogger("smartsprint").setLevel(settings.log_level.upper())

    app = FastAPI(
        title="SmartSprint API",
        description="Authentication, roles and user administration for SmartSprint.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Starlette wraps the most recently added middleware outermost, so add
    # innermost first: log_requests -> SlowAPI -> CORS -> TrustedHost.
    app.middleware("http")(log_requests)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = limiter

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
    app.include_router(users_router, prefix="/api/v1", tags=["Users"])
    app.add_api_route("/api/v1/health", health, methods=["GET"], tags=["Health"], response_model=HealthResponse)

    return app
