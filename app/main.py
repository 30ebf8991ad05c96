import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.api.v1.router import api_v1_router
from app.collectors.factory import build_fetcher
from app.core.config import settings, validate_settings_for_production
from app.core.exceptions import AppError
from app.core.logging import init_sentry, setup_logging
from app.core.metrics import PrometheusMiddleware, metrics_response
from app.core.middleware import RequestLoggingMiddleware
from app.core.rate_limit import limiter
from app.db.postgres import Database
from app.services.visibility_poller import BrandLockRegistry, VisibilityPoller

# Configure logging before anything else
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    init_sentry()
    database = Database.from_settings(settings)
    fetcher = build_fetcher(settings)
    logger.info("Starting AI Visibility Tracker (fetcher=%s)...", fetcher.name)
    app.state.db = database
    app.state.poller = VisibilityPoller(
        fetcher,
        locks=BrandLockRegistry(),
        concurrency=settings.poll_concurrency,
        fetch_timeout=settings.fetch_timeout_seconds,
        max_retries=settings.fetch_max_retries,
        retry_backoff=settings.fetch_retry_backoff,
    )

    yield

    # Shutdown
    await fetcher.aclose()
    await database.dispose()
    logger.info("AI Visibility Tracker shut down")


app = FastAPI(
    title="AI Visibility Tracker",
    description="Tracks brand share of voice in AI assistant answers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(AppError)
async def _app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}" for err in exc.errors()]
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"error": f"Rate limit exceeded: {exc.detail}"})


# Log unhandled exceptions with traceback
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"error": f"{type(exc).__name__}: {exc}"})


# Rate limiter
app.state.limiter = limiter

# Request logging + metrics middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware)

# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)


@app.get("/api/v1/health")
async def health(request: Request):
    db_ok = await request.app.state.db.ping()
    return {
        "status": "ok" if db_ok else "degraded",
        "database": db_ok,
        "fetcher": request.app.state.poller.fetcher.name,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
