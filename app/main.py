import logging
import time
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

# Import all models to ensure they're registered with SQLAlchemy Base
# This is needed for relationships between models in different files
from . import (
    models,  # noqa: F401
    models_invoice,  # noqa: F401
    models_visit,  # noqa: F401
)
from .config import ALLOWED_ORIGINS, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.auth.router import router as auth_router
from .domain.billing.router import router as billing_router
from .domain.billing.subscription_service import BillingRequestError
from .domain.clinics.router import router as clinics_router
from .domain.dashboard.router import router as dashboard_router
from .domain.demo.router import router as demo_router
from .domain.invoices.router import router as invoices_router
from .domain.patients.router import router as patients_router
from .domain.procedures.router import router as procedures_router
from .domain.team.router import router as team_router
from .domain.visits.router import router as visits_router
from .plan_limits import PlanLimitExceeded
from .rate_limiter import get_redis_client
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_tables() -> None:
    """Create missing tables; several workers may race on first boot"""
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("🗄️ Database schema ready")
    except SQLAlchemyError as e:
        if "already exists" in str(e) or "duplicate key" in str(e):
            logger.info("Database schema created by another worker")
        else:
            logger.error(f"❌ Failed to create database tables: {e}")
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 ZahiFlow API starting")
    create_tables()

    try:
        get_redis_client()
    except (redis.RedisError, OSError) as e:
        logger.warning(f"⚠️ Redis unreachable, rate limits are per-process until it returns: {e}")

    yield
    logger.info("ZahiFlow API shutting down")


app = FastAPI(title="ZahiFlow API", version="1.0.0", lifespan=lifespan)


def serializable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw input, with ctx values rendered as text"""
    errors = []
    for error in exc.errors():
        error = {k: v for k, v in error.items() if k not in ("input", "url")}
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    errors = serializable_errors(exc)
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content={"detail": errors})


@app.exception_handler(PlanLimitExceeded)
async def plan_limit_exception_handler(request: Request, exc: PlanLimitExceeded):
    logger.info(f"🚫 {exc.resource} limit reached on plan {exc.plan} ({exc.current}/{exc.limit})")
    return JSONResponse(
        status_code=403,
        content=exc.to_dict(),
        headers={"X-Upgrade-Required": "true"},
    )


@app.exception_handler(BillingRequestError)
async def billing_exception_handler(request: Request, exc: BillingRequestError):
    # Billing endpoints answer with {"error": ...} rather than {"detail": ...}
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-Upgrade-Required", "X-Onboarding-Required", "X-Token-Expired", "Retry-After"],
)

# Routes
app.include_router(auth_router)
app.include_router(clinics_router)
app.include_router(team_router)
app.include_router(billing_router)
app.include_router(patients_router)
app.include_router(appointments_router)
app.include_router(visits_router)
app.include_router(procedures_router)
app.include_router(invoices_router)
app.include_router(dashboard_router)
app.include_router(demo_router)


@app.get("/")
def root():
    return {"message": "ZahiFlow API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Redis round-trip for uptime monitoring"""
    try:
        client = get_redis_client()
        started = time.perf_counter()
        client.ping()
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        info = client.info()
    except (redis.RedisError, OSError) as e:
        return {"status": "unhealthy", "redis": {"connected": False, "error": str(e)}}

    return {
        "status": "healthy",
        "redis": {
            "connected": True,
            "response_time_ms": latency_ms,
            "version": info.get("redis_version", "unknown"),
            "used_memory_human": info.get("used_memory_human", "unknown"),
        },
    }
