import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Import all models to ensure they're registered with SQLAlchemy Base
# This is needed for relationships between models in different files
from . import (
    models,  # noqa: F401
    models_catalog,  # noqa: F401
    models_cms,  # noqa: F401
    models_marketing,  # noqa: F401
    models_messaging,  # noqa: F401
    models_sales,  # noqa: F401
)
from .config import ALLOWED_ORIGINS
from .database import Base, SessionLocal, engine
from .domain.appointments.router import router as appointments_router
from .domain.auth.router import router as auth_router
from .domain.catalog.router import router as catalog_router
from .domain.cms.router import router as cms_router
from .domain.coupons.router import router as coupons_router
from .domain.customers.router import router as customers_router
from .domain.integrations.router import router as integrations_router
from .domain.loyalty.router import router as loyalty_router
from .domain.marketing.router import router as marketing_router
from .domain.pos.router import router as pos_router
from .domain.quotes.router import router as quotes_router
from .domain.settings.router import router as settings_router
from .domain.staff.defaults import seed_roles_and_permissions
from .domain.staff.router import router as staff_router
from .errors import register_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    db = SessionLocal()
    try:
        seed_roles_and_permissions(db)
    finally:
        db.close()

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()  # Connection test
    except Exception as e:
        logger.warning(f"Redis connection failed - rate limiting will use process memory only: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Smart Detail API", version="1.0.0", lifespan=lifespan)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.error(f"{request.method} {request.url.path} - Error after {elapsed_ms:.0f}ms: {str(e)}")
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
    response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.0f}"
    return response


logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
for router in (
    auth_router,
    staff_router,
    settings_router,
    customers_router,
    catalog_router,
    appointments_router,
    quotes_router,
    coupons_router,
    loyalty_router,
    pos_router,
    marketing_router,
    cms_router,
    integrations_router,
):
    app.include_router(router, prefix=API_PREFIX)


@app.get("/")
def root():
    return {"message": "Smart Detail API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Check Redis connectivity for monitoring"""
    try:
        from .rate_limiter import get_redis_client

        redis_client = get_redis_client()
        if redis_client is None:
            return {"status": "disabled", "redis": {"connected": False, "error": "REDIS_URL not set"}}

        start_time = time.time()
        redis_client.ping()
        response_time = (time.time() - start_time) * 1000

        info = redis_client.info()
        return {
            "status": "healthy",
            "redis": {
                "connected": True,
                "response_time_ms": round(response_time, 2),
                "version": info.get("redis_version", "unknown"),
                "used_memory_human": info.get("used_memory_human", "unknown"),
                "connected_clients": info.get("connected_clients", 0),
            },
        }
    except Exception as e:
        return {"status": "unhealthy", "redis": {"connected": False, "error": str(e)}}
