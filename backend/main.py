# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI application.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register CORS and request-logging middleware.
* Translate domain exceptions into JSON error responses.
* Mount the feature routers (auth, repositories, admin, statistics, utils).
* Run the retention purge in the background while the process is up.
* Expose a /health endpoint for container liveness checks.
"""

import asyncio
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from admin.router import router as admin_router
from auth.router import router as auth_router
from core.config import settings
from core.exceptions import CredentialVaultError, ValidationError
from core.logger import logger
from repositories.router import router as repositories_router
from services.retention import purge_loop
from stats.router import router as statistics_router
from utils.router import router as utils_router

app = FastAPI(title="Credential Vault", version="1.0.0")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
# Only the configured frontend origin may call the API from a browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies are never echoed, so passwords and tokens stay out of the log.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(CredentialVaultError)
async def _domain_error(request: Request, exc: CredentialVaultError):
    if exc.status_code >= 500:
        # Internal faults: log the real cause, show the caller nothing specific
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})

    content = {"detail": exc.detail}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def _request_validation_error(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        # loc is ("body", "fieldName") / ("query", "name"); the last part names the field
        field = str(err["loc"][-1]) if err.get("loc") else "request"
        errors.setdefault(field, err.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": errors},
    )


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(auth_router)
app.include_router(repositories_router)
app.include_router(admin_router)
app.include_router(statistics_router)
app.include_router(utils_router)


# ---------------------------------------------------------------------------
# Lifecycle and health check
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def _on_startup():
    logger.info("Credential Vault service starting up (environment=%s)", settings.environment)
    app.state.purge_task = asyncio.create_task(purge_loop())


@app.on_event("shutdown")
async def _on_shutdown():
    task = getattr(app.state, "purge_task", None)
    if task is not None:
        task.cancel()
    logger.info("Credential Vault service shutting down")


@app.get("/health")
def health():
    return {"status": "ok"}
