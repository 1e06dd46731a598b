import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import health, scheduler
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.core.middleware import RequestSizeLimitMiddleware
from app.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.bootstrap_schema_on_startup:
        ensure_runtime_schema_compatibility(run_homeroom_backfill=settings.backfill_legacy_homerooms)
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("REQUEST FAILED | path=%s | status=%s | message=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(scheduler.router, prefix=f"{settings.api_prefix}/scheduler", tags=["scheduler"])
