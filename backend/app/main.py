"""Job Portal API application"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded

from app.api import auth, health, users
from app.config import settings
from app.middleware.monitoring import MonitoringMiddleware
from app.middleware.rate_limit import limiter
from app.utils.errors import ServiceError
from app.utils.logger import logger, setup_logging
from app.utils.revocation import RevocationSweeper, get_revocation_store

SERVICE_NAME = "Job Portal"
SERVICE_VERSION = "0.1.0"

setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the deny-list sweeper for the lifetime of the process"""
    sweeper = RevocationSweeper(get_revocation_store(), settings.REVOCATION_SWEEP_INTERVAL_SECONDS)
    sweeper.start()
    app.state.revocation_sweeper = sweeper
    logger.info(
        f"{SERVICE_NAME} starting: revocation={settings.REVOCATION_BACKEND} "
        f"rate_limiting={settings.RATE_LIMIT_ENABLED} metrics={settings.METRICS_ENABLED}",
        extra={"action": "startup"},
    )
    yield
    sweeper.stop()
    logger.info(f"{SERVICE_NAME} shutting down", extra={"action": "shutdown"})


app = FastAPI(
    title=SERVICE_NAME,
    description="Accounts, registration and session management for the job portal",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)

if settings.METRICS_ENABLED:
    app.add_middleware(MonitoringMiddleware)

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=[settings.METRICS_PATH, "/health.*"],
    ).instrument(app).expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# slowapi reads the limiter from app.state; a disabled limiter lets every call through
app.state.limiter = limiter

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)


@app.get("/")
def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None,
    }


# ---------------------------------------------------------------------------
# Error rendering: every failure body is {"error": <code>, "message": <text>}
# ---------------------------------------------------------------------------

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(
            f"Service error on {request.method} {request.url.path}: {exc.message}",
            extra={"action": exc.code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
        headers=exc.headers,
    )


def _jsonable_errors(errors):
    """Drop non-serialisable ``ctx``/``input`` values pydantic attaches to errors"""
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "message": message, "detail": _jsonable_errors(errors)},
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        f"Rate limit exceeded: {request.method} {request.url.path} "
        f"from {request.client.host if request.client else 'unknown'}",
        extra={"action": "rate_limited"},
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "rate_limit_exceeded",
            "message": f"Too many requests ({exc.detail}). Please try again later.",
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_server_error", "message": "An unexpected error occurred."},
    )
