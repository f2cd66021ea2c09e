"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.container import get_container
from src.pm_clearing.api.breeding_router import router as breeding_router
from src.pm_clearing.api.trades_router import router as trades_router
from src.pm_common.database import engine
from src.pm_common.datetime_utils import utc_now
from src.pm_common.errors import AppError, RateLimitError, ValidationError
from src.pm_common.redis_client import close_redis, get_redis
from src.pm_common.response import error_response
from src.pm_gateway.middleware.rate_limit import rate_limit
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_prompt.api.router import router as prompts_router

logger = logging.getLogger("pm.app")

_started_at = time.monotonic()


def _uses_postgres() -> bool:
    return settings.STORAGE_BACKEND == "postgres" or settings.RATE_LIMIT_BACKEND == "postgres"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the backends in use. Shutdown: dispose them."""
    if _uses_postgres():
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    if settings.RATE_LIMIT_BACKEND == "redis":
        await (await get_redis()).ping()
    get_container()
    yield
    executor = get_container().executor
    if hasattr(executor, "close"):
        await executor.close()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.details)
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    err = ValidationError("Validation failed", details)
    resp = error_response(err.code, err.message, err.details)
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    resp = error_response(9002, "Internal server error")
    return JSONResponse(status_code=500, content=resp.model_dump(exclude_none=True))


app.include_router(prompts_router, prefix="/api/v1")
app.include_router(trades_router, prefix="/api/v1")
app.include_router(breeding_router, prefix="/api/v1")


@app.get("/api/v1/health", dependencies=[Depends(rate_limit("health"))])
async def health() -> dict[str, object]:
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utc_now().isoformat(),
        "uptime": round(time.monotonic() - _started_at, 3),
    }
