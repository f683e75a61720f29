"""FastAPI application for StudentBox."""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from studentbox import __version__
from studentbox.config import settings
from studentbox.database import close_db, init_db, ping_db
from studentbox.services.student_import import import_sessions

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

# The API only serves JSON and CSV downloads
_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(_SECURITY_HEADERS)
        if settings.enforce_https:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def _is_production() -> bool:
    return not settings.debug and not os.getenv("PYTEST_CURRENT_TEST")


def _check_security_configuration() -> None:
    """Refuse to start in production with a weak secret key.

    Raises:
        RuntimeError: If the secret key is unusable outside debug mode.
    """
    production = _is_production()

    if len(settings.secret_key) < 32:
        message = "STUDENTBOX_SECRET_KEY is missing or shorter than 32 characters"
        if production:
            logger.error("SECURITY ERROR: %s", message)
            raise RuntimeError("Startup blocked by insecure configuration. See logs for details.")
        logger.warning("SECURITY WARNING (development mode): %s", message)

    if production and not settings.enforce_https:
        logger.warning("SECURITY WARNING: enforce_https is off; tokens may travel in clear text")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    _check_security_configuration()
    await init_db()
    logger.info(
        "Student import ready: chunk size %d, upload limit %d MB, checksum %s",
        settings.import_chunk_size,
        settings.max_upload_size_mb,
        "on" if settings.verify_id_checksum else "off",
    )

    yield

    # Import sessions live in memory and do not survive a restart
    import_sessions.clear()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Student accommodation CRM with bulk student CSV import",
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Empty list means same-origin only
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=600,
    )

app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """Liveness check that also reports whether MongoDB answers."""
    return JSONResponse(
        content={
            "status": "healthy",
            "version": __version__,
            "app_name": settings.app_name,
            "database": "ok" if await ping_db() else "unavailable",
        }
    )


from studentbox.routers import auth, import_router  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(import_router.router, prefix="/api/import", tags=["Student Import"])
