"""
api/main.py -- FastAPI application entry point for WordGate.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. log_requests          -- one log line per request, including gate rejections
  3. access_gate           -- session check via auth.gate.protect(call_next)
  4. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Exception handlers below are the single place where errors become HTTP
responses. Every error body uses the ErrorResponse envelope.

Lifespan builds the Credential Issuer from Settings once at startup and keeps
it on app.state; request handlers only read it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse
from api.routes.auth import router as auth_router
from api.routes.proxy import router as proxy_router
from auth.gate import protect
from auth.models import AllowList, AuthError, AuthErrorKind
from auth.tokens import CredentialIssuer
from core.config import get_settings

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("wordgate.api")

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build read-only, process-wide state: settings and the credential issuer.

    An empty allow-list is logged here but does not stop startup; logins fail
    with server_misconfigured until ACCESS_PASSWORDS is set and the process
    restarted.
    """
    logger.info("WordGate API starting up")
    settings = get_settings()
    allow_list = AllowList.from_csv(settings.access_passwords)
    app.state.settings = settings
    app.state.issuer = CredentialIssuer(allow_list)
    if allow_list:
        logger.info("Auth initialized (%d allowed passwords)", len(allow_list))
    else:
        logger.error("ACCESS_PASSWORDS is not set -- every login will fail")

    yield

    logger.info("WordGate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="WordGate API",
    description="Password-gated word lookup and text-to-speech.",
    version=_VERSION,
    lifespan=lifespan,
    # The schema pages would sit outside /api/ and be redirected to the login
    # page by the gate anyway; disable them outright.
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() and @app.middleware() both push onto the front of the
# stack, so the LAST one registered is the outermost. Register innermost first.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

# Attach the shared limiter to app.state so SlowAPIMiddleware can locate it.
# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Access gate
#
# Wraps everything behind it (routing, static pages, unknown paths) so no
# route can be forgotten. /login.html and /api/verify are the only exemptions.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def access_gate(request: Request, call_next):
    return await protect(call_next)(request)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
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


# Registered last so it is the outermost layer: a bad Host header is a 400
# before the gate or the request log sees it.
app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=get_settings().allowed_hosts,
)


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(proxy_router, prefix="/api", tags=["Proxy"])
# Web UI router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Translate an AuthError kind into its status code and generic message.

    The kind tells operators what happened (e.g. server_misconfigured was
    already logged by the issuer); the body only carries the public message.
    server_misconfigured goes out as a plain internal_error so the code field
    does not reveal it either.
    """
    code = exc.kind.value
    if exc.kind is AuthErrorKind.server_misconfigured:
        code = "internal_error"
    response = _error_response(exc.status_code, code, exc.message)
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return _error_response(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with detail=ErrorDetail(...).model_dump()
    (a dict). When detail is already a structured dict, use it directly as the
    error field. Registered on Starlette's base class so routing's own 404
    and 405 land here too; 405 is mapped to the method_not_allowed kind and
    keeps its Allow header.
    """
    if exc.status_code == 405:
        response = await auth_error_handler(request, AuthError(AuthErrorKind.method_not_allowed))
        response.headers.update(exc.headers or {})
        return response
    if isinstance(exc.detail, dict):
        detail = {k: v for k, v in exc.detail.items() if v is not None}
        return JSONResponse(status_code=exc.status_code, content={"error": detail}, headers=exc.headers)
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")
