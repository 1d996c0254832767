"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from creditledger.config import settings
from creditledger.exceptions import LedgerError
from creditledger.middleware.logging import LoggingMiddleware, setup_logging
from creditledger.middleware.metrics import MetricsMiddleware
from creditledger.schemas.error import ErrorCode, ErrorDetail
from creditledger.schemas.response import error_body

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    settings.validate_runtime()
    if not settings.bot_secret and settings.bot_auth_disabled:
        logger.warning("bot_auth_bypass_enabled", env=settings.app_env)

    logger.info("application_starting", env=settings.app_env)
    yield
    logger.info("application_shutting_down")


app = FastAPI(
    title="Credit Ledger Service",
    description="Prepaid credit ledger for the image bot with Razorpay top-ups",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render domain errors as an ERROR envelope with the error's own status code."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        error_message=exc.message,
    )

    message = exc.message
    if exc.status_code >= 500 and settings.is_production:
        message = "Internal server error"

    return JSONResponse(status_code=exc.status_code, content=error_body(message, exc.data))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors.

    Returns 400 with one entry per offending field.
    """
    details = []
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        code = ErrorCode.MISSING_REQUIRED_FIELD if error["type"] == "missing" else ErrorCode.INVALID_VALUE

        details.append(
            ErrorDetail(
                code=code,
                message=error["msg"],
                field=field_path or None,
                value=error.get("input") if code != ErrorCode.MISSING_REQUIRED_FIELD else None,
            ).model_dump(mode="json")
        )

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        error_count=len(details),
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Request validation failed", {"details": details}),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Route misses and other framework HTTP errors, in the common envelope."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Route {request.method} {request.url.path} not found"
    else:
        message = str(exc.detail)

    logger.warning("http_error", path=request.url.path, method=request.method, status_code=exc.status_code)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors without exposing details in production."""
    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    message = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(message, {"code": ErrorCode.DATABASE_ERROR}),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other uncaught exceptions.

    Logs the stack trace and returns a safe message in production.
    """
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
    )

    message = "Internal server error" if settings.is_production else (str(exc) or "Internal server error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(message, {"code": ErrorCode.INTERNAL_ERROR}),
    )


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "Credit Ledger Service",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
    }


from creditledger.api.v1 import bot, credits, health, payments, users  # noqa: E402
from creditledger.api.webhooks import razorpay as razorpay_webhooks  # noqa: E402

app.include_router(health.router, tags=["Health"])
app.include_router(bot.router, prefix="/api", tags=["Bot"])
app.include_router(users.router, prefix="/api", tags=["Users"])
app.include_router(credits.router, prefix="/api", tags=["Credits"])
app.include_router(payments.router, prefix="/api", tags=["Payments"])
app.include_router(razorpay_webhooks.router, prefix="/api", tags=["Webhooks"])
