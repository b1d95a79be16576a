from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from edutrack.api.academic_years import router as academic_years_router
from edutrack.api.admin import router as admin_router
from edutrack.api.auth import router as auth_router
from edutrack.api.founder import router as founder_router
from edutrack.api.health import router as health_router
from edutrack.api.inspector import router as inspector_router
from edutrack.api.metrics_endpoint import router as metrics_router
from edutrack.api.notifications import router as notifications_router
from edutrack.api.reports import router as reports_router
from edutrack.api.sg import router as sg_router
from edutrack.api.teacher import router as teacher_router
from edutrack.core.config import SETTINGS
from edutrack.core.errors import DomainError
from edutrack.core.logging import setup_logging
from edutrack.db.engine import lifespan_db
from edutrack.db.redis import lifespan_redis
from edutrack.middleware.metrics import MetricsMiddleware
from edutrack.middleware.request_context import RequestContextMiddleware
from edutrack.repos.store import store
from edutrack.services import users_service

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Teardown runs in reverse order, like nested try/finally.
    async with lifespan_db():
        async with lifespan_redis():
            if SETTINGS.is_dev:
                users_service.ensure_admin(
                    store, username="admin", password=SETTINGS.admin_password
                )
            yield


app = FastAPI(
    title="edutrack",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)


# ---------------------------------------------------------------------------
# Error bodies: always {"message": ...}
# ---------------------------------------------------------------------------


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.warning(
        "%s %s rejected: %s (%d)",
        request.method,
        request.url.path,
        exc.message,
        exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = []
    for err in exc.errors():
        # Drop the leading "body"/"query"/"path" segment.
        path = ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0])
        details.append(f"{path}: {err['msg']}")
    logger.warning("Invalid request %s %s: %s", request.method, request.url.path, details)
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request data", "details": details},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: RequestContext → Metrics → CORS → route handler,
# so every request has an id before its metrics are recorded.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(teacher_router)
app.include_router(inspector_router)
app.include_router(founder_router)
app.include_router(sg_router)
app.include_router(reports_router)
app.include_router(notifications_router)
app.include_router(academic_years_router)
app.include_router(admin_router)

logger.info(
    "edutrack started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
