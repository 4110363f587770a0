"""FastAPI application entry point for the marketplace.

Run with: uvicorn src.main:app --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from src.mp_account.api.router import router as account_router
from src.mp_admin.api.router import router as admin_router
from src.mp_common.database import engine, marketplace_state_seeded
from src.mp_common.errors import AppError
from src.mp_common.redis_client import close_redis, get_redis
from src.mp_common.response import error_response
from src.mp_custody.infrastructure.http_client import close_custody_http_client
from src.mp_gateway.api.router import router as auth_router
from src.mp_gateway.middleware.request_log import RequestIdLogFilter, RequestLogMiddleware
from src.mp_settlement.api.router import router as listings_router

_log_handler = logging.StreamHandler()
_log_handler.addFilter(RequestIdLogFilter())
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s [%(request_id)s]: %(message)s",
    handlers=[_log_handler],
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    if not await marketplace_state_seeded():
        # Every marketplace operation reads the state row; refuse to serve without it
        raise RuntimeError("marketplace_state is missing; run `alembic upgrade head`")
    redis = await get_redis()
    await redis.ping()
    logger.info(
        "%s started: operator=%s reprice_requires_seller=%s",
        settings.APP_NAME,
        settings.MARKETPLACE_OPERATOR_ADDRESS,
        settings.REPRICE_REQUIRES_SELLER,
    )
    yield
    await close_custody_http_client()
    await close_redis()
    await engine.dispose()
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(title=settings.APP_NAME, version=API_VERSION, lifespan=lifespan)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


for _router in (auth_router, account_router, listings_router, admin_router):
    app.include_router(_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness only; no dependency is touched."""
    return {"status": "ok", "version": API_VERSION}


@app.get("/ready")
async def ready() -> JSONResponse:
    """Readiness: the database is migrated and Redis answers."""
    checks: dict[str, bool] = {}
    try:
        checks["database"] = await marketplace_state_seeded()
    except SQLAlchemyError:
        logger.warning("Readiness: database check failed", exc_info=True)
        checks["database"] = False
    try:
        checks["redis"] = bool(await (await get_redis()).ping())
    except RedisError:
        logger.warning("Readiness: redis check failed", exc_info=True)
        checks["redis"] = False
    ok = all(checks.values())
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"status": "ok" if ok else "degraded", "checks": checks},
    )
