import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import (
    CollaboratorNotFoundError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from app.core.logging import setup_logging
from app.api import deps
from app.api.v1.api import api_router
from app.db.session import engine, init_db
from app.realtime.websocket import router as realtime_router
from app.services.deadlines import run_deadline_scanner

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    scanner = None
    if settings.DEADLINE_SCANNER_ENABLED:
        scanner = asyncio.create_task(run_deadline_scanner(
            engine,
            deps.get_mailer(),
            deps.get_registry(),
            interval_seconds=settings.DEADLINE_SCAN_INTERVAL_SECONDS,
            horizon=timedelta(minutes=settings.DEADLINE_HORIZON_MINUTES),
        ))
    try:
        yield
    finally:
        if scanner is not None:
            scanner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await scanner


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Set up CORS; credentials are needed for the access_token cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Domain error translation ===

@app.exception_handler(CollaboratorNotFoundError)
def collaborator_not_found_handler(request: Request, exc: CollaboratorNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": exc.detail, "emails": exc.emails, "user_ids": exc.user_ids},
    )


@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.detail})


@app.exception_handler(ForbiddenError)
def forbidden_handler(request: Request, exc: ForbiddenError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.detail})


@app.exception_handler(ValidationFailedError)
def validation_failed_handler(request: Request, exc: ValidationFailedError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.detail, "errors": exc.errors},
    )


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    # Same shape as ValidationFailedError: one entry per violated field
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation failed", "errors": errors},
    )


# Include API routes separately
app.include_router(api_router, prefix=settings.API_V1_STR)

# Realtime channel
app.include_router(realtime_router)
