"""
api/main.py -- FastAPI application entry point for quoteshare.

Run with:      python main.py
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for ALLOWED_ORIGINS
  2. SlowAPIMiddleware  -- default per-IP limit on every route (off in development)
  3. log_requests       -- one log line per request with latency

Lifespan opens the store (creating the schema) and the token issuer on
startup and closes the store on shutdown.

Every response body is an envelope. Success: {success: true, data}. Error:
{success: false, code, message}; the exception handlers below are the only
place errors are turned into HTTP responses.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import HealthResponse
from api.responses import error_response, ok
from api.routes.auth import router as auth_router
from api.routes.groups import router as groups_router
from api.routes.quotes import router as quotes_router
from auth.tokens import TokenIssuer
from core.config import get_settings
from core.errors import ErrorCode, QuoteShareError
from db.store import SQLStore

API_VERSION = "0.1.0"

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("quoteshare.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the store and token issuer before the first request; close on shutdown."""
    logger.info("quoteshare API starting up (environment=%s)", settings.environment)
    Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)
    app.state.store = SQLStore(settings.database_url, bcrypt_rounds=settings.bcrypt_rounds)
    logger.info("Store initialized at %s", settings.database_path)
    app.state.token_issuer = TokenIssuer(settings.secret_key, ttl_hours=settings.token_ttl_hours)
    if not limiter.enabled:
        logger.info("Rate limiting disabled in development")

    yield

    app.state.store.close()
    logger.info("quoteshare API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="quoteshare API",
    description="Share quotes within private groups.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


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


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(quotes_router, tags=["Quotes"])
app.include_router(groups_router, tags=["Groups"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

_CODE_BY_STATUS = {
    400: ErrorCode.INVALID_INPUT,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.ALREADY_EXISTS,
    429: ErrorCode.RATE_LIMITED,
}


@app.exception_handler(QuoteShareError)
async def quoteshare_error_handler(request: Request, exc: QuoteShareError) -> JSONResponse:
    """Render any taxonomy error with the status its code maps to."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc, request.method, request.url.path)
    return error_response(exc.status_code, exc.code.value, exc.message)


# Sync on purpose: SlowAPIMiddleware can only call a synchronous handler and
# falls back to its own (non-envelope) body for coroutine handlers.
@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 RATE_LIMITED with Retry-After set to the limit's window in seconds."""
    response = error_response(429, ErrorCode.RATE_LIMITED.value, f"Too many requests: {exc.detail}")
    response.headers["Retry-After"] = str(exc.limit.limit.get_expiry() if exc.limit else 60)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed body or query parameters are INVALID_INPUT (400), not 422."""
    errors = exc.errors()
    message = "Invalid request data"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{message}: {field + ': ' if field else ''}{first.get('msg', '')}"
    return error_response(400, ErrorCode.INVALID_INPUT.value, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and wrong methods still get the error envelope."""
    code = _CODE_BY_STATUS.get(exc.status_code)
    if code is None:
        code = ErrorCode.INTERNAL_ERROR if exc.status_code >= 500 else ErrorCode.INVALID_INPUT
    return error_response(exc.status_code, code.value, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback goes to the log only; the client gets a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_response(500, ErrorCode.INTERNAL_ERROR.value, "An unexpected error occurred")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined here rather than in a router; exempt from rate limiting so load
# balancer probes are never throttled.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
@limiter.exempt
async def health() -> JSONResponse:
    """Return API liveness and current version."""
    return ok(HealthResponse(version=API_VERSION))
