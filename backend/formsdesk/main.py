"""FastAPI application entry point"""
import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from formsdesk.api import auth, forms, health, submissions, users
from formsdesk.config import settings
from formsdesk.database import SessionLocal, init_db
from formsdesk.exceptions import FormsdeskError, StorageError
from formsdesk.middleware.rate_limit import limiter
from formsdesk.utils.jwt_utils import require_signing_secret
from formsdesk.utils.logger import logger, setup_logging
from formsdesk.utils.sessions import cleanup_expired_sessions

# Setup logging
setup_logging(settings.LOG_LEVEL)


def _sweep_expired_sessions() -> int:
    db = SessionLocal()
    try:
        return cleanup_expired_sessions(db)
    except StorageError as e:
        logger.error(f"Session cleanup failed: {e.message}", extra={"action": "cleanup_sessions"})
        return 0
    finally:
        db.close()


async def _session_sweeper(interval: int) -> None:
    while True:
        await asyncio.sleep(interval)
        await asyncio.to_thread(_sweep_expired_sessions)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # A missing signing secret aborts startup
    require_signing_secret(settings.JWT_SECRET)
    init_db()

    logger.info("formsdesk backend starting up", extra={"tenant_id": settings.TENANT_ID})
    _sweep_expired_sessions()

    sweeper = None
    if settings.SESSION_CLEANUP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(_session_sweeper(settings.SESSION_CLEANUP_INTERVAL_SECONDS))

    yield

    if sweeper is not None:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
    logger.info("formsdesk backend shutting down")


# Create FastAPI app
app = FastAPI(
    title="formsdesk",
    description="Admin authentication and multi-tenant form intake for agency-managed websites",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Monitoring middleware
if settings.METRICS_ENABLED:
    from formsdesk.middleware.monitoring import MonitoringMiddleware
    app.add_middleware(MonitoringMiddleware)

    # Prometheus metrics
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting (the limiter itself is a no-op when RATE_LIMIT_ENABLED is false)
app.state.limiter = limiter

# ===== Route Setup =====

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(submissions.router)
app.include_router(forms.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "formsdesk",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None,
    }


# ===== Error Handlers =====

@app.exception_handler(FormsdeskError)
async def formsdesk_error_handler(request: Request, exc: FormsdeskError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}", extra={"action": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query strings are plain 400s"""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        field = ".".join(str(part) for part in errors[0].get("loc", ())[1:])
        message = f"{field}: {errors[0].get('msg')}" if field else str(errors[0].get("msg"))
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={"action": request.url.path, "reason": str(exc.detail)},
    )
    return JSONResponse(
        status_code=429,
        content={"success": False, "error": "Too many requests. Please try again later."},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={"action": request.url.path},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "An unexpected error occurred"},
    )
