"""
Booyah Arena FastAPI Application
Main entry point for the application
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import asyncio
import logging
import subprocess
import time

from app.core.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Sentry integration
if settings.sentry_dsn:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
    from sentry_sdk.integrations.redis import RedisIntegration
    
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
            RedisIntegration(),
        ],
        traces_sample_rate=0.1,
        environment=settings.app_env,
    )

from app.api.health import router as health_router
from app.api.v1.auth import router as auth_router
from app.api.v1.wallet import router as wallet_router
from app.api.v1.tournaments import router as tournaments_router
from app.api.v1.payments import router as payments_router
from app.api.v1.withdrawals import router as withdrawals_router
from app.api.v1.admin import router as admin_router
from app.core.errors import ArenaError
from app.core.metrics import REQUEST_COUNT, REQUEST_DURATION, ACTIVE_CONNECTIONS
from app.core.redis_client import redis_client
from app.middleware.rate_limit import RateLimitMiddleware

# Create FastAPI app instance
app = FastAPI(
    title="Booyah Arena API",
    description="Tournament registration and token ledger for the Booyah Arena community",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


def _run_migrations():
    return subprocess.run(
        ["alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        timeout=60
    )


@app.on_event("startup")
async def startup_event():
    """Run database migrations on startup when enabled"""
    if not settings.auto_migrate:
        return
    logger.info("Running database migrations...")
    result = await asyncio.to_thread(_run_migrations)
    if result.returncode != 0:
        logger.error(f"Database migrations failed: {result.stderr}")
        raise RuntimeError("alembic upgrade head failed")
    logger.info("Database migrations completed successfully")


@app.exception_handler(ArenaError)
async def arena_error_handler(request: Request, exc: ArenaError):
    """Translate typed core errors into JSON responses"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.user_message,
            "error": type(exc).__name__,
            "kind": exc.kind
        }
    )


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting middleware
app.add_middleware(
    RateLimitMiddleware,
    redis_client=redis_client if settings.rate_limit_enabled else None
)


# Add metrics middleware
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    ACTIVE_CONNECTIONS.inc()
    status_code = 500
    
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        duration = time.time() - start_time
        ACTIVE_CONNECTIONS.dec()
        
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=request.url.path,
            status=status_code
        ).inc()
        
        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=request.url.path
        ).observe(duration)


# Add metrics endpoint
@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Include routers
prefix = settings.api_v1_prefix
app.include_router(health_router, prefix=prefix, tags=["health"])
app.include_router(auth_router, prefix=f"{prefix}/auth", tags=["authentication"])
app.include_router(wallet_router, prefix=f"{prefix}/wallet", tags=["wallet"])
app.include_router(tournaments_router, prefix=f"{prefix}/tournaments", tags=["tournaments"])
app.include_router(payments_router, prefix=f"{prefix}/payments", tags=["payments"])
app.include_router(withdrawals_router, prefix=f"{prefix}/withdrawals", tags=["withdrawals"])
app.include_router(admin_router, prefix=f"{prefix}/admin", tags=["admin"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
