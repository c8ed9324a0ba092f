import os
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session

from flobotz.core.config import settings, Settings
from flobotz.core.context import AppContext
from flobotz.core.logging import configure_logging, LoggingMiddleware, get_logger
from flobotz.core.rate_limiter import rate_limit_middleware, setup_redis_rate_limiter, limiter, rate_limit_handler
from flobotz.core.monitoring import (
    MetricsMiddleware, get_metrics, update_health_status, DatabaseMetricsCollector
)
from flobotz.core.security import get_current_user
from flobotz.database.connection import (
    get_db, SessionLocal, create_tables, check_database_health, get_db_stats
)
from flobotz.models import User
from flobotz.routers import chat, history, vote, document

configure_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)


def configure_tracing(config: Settings) -> None:
    """Export LangSmith tracing settings for the langchain title model"""
    if not config.langsmith_enabled:
        logger.info("LangSmith tracing disabled")
        return

    os.environ["LANGCHAIN_TRACING_V2"] = "true"
    if config.langsmith_endpoint:
        os.environ["LANGCHAIN_ENDPOINT"] = config.langsmith_endpoint
    if config.langsmith_api_key:
        os.environ["LANGCHAIN_API_KEY"] = config.langsmith_api_key
    if config.langsmith_project:
        os.environ["LANGCHAIN_PROJECT"] = config.langsmith_project
    logger.info("LangSmith tracing enabled", project=config.langsmith_project)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("Starting FloBotz Chat API", version=settings.app_version)

    configure_tracing(settings)

    if not settings.is_production:
        # Production schemas are managed by alembic
        create_tables()

    if settings.rate_limit_enabled and settings.redis_url:
        setup_redis_rate_limiter(settings.redis_url)

    app.state.context = AppContext.from_settings(settings, SessionLocal)

    update_health_status("database", check_database_health())
    update_health_status("openai", bool(settings.openai_api_key))

    logger.info("Application startup complete")
    yield

    logger.info("Shutting down FloBotz Chat API")
    await app.state.context.aclose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=settings.app_description,
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    **settings.get_cors_config()
)

if settings.metrics_enabled:
    app.add_middleware(MetricsMiddleware)

app.add_middleware(LoggingMiddleware)

if settings.rate_limit_enabled:
    app.middleware("http")(rate_limit_middleware)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.include_router(chat.router)
app.include_router(history.router)
app.include_router(vote.router)
app.include_router(document.router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.app_version,
        "environment": settings.environment.value,
        "services": {}
    }

    db_healthy = check_database_health()
    health_status["services"]["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "stats": get_db_stats()
    }
    update_health_status("database", db_healthy)

    # Configuration check only; the provider is not called
    openai_configured = bool(settings.openai_api_key)
    health_status["services"]["openai"] = {
        "status": "configured" if openai_configured else "not_configured"
    }
    update_health_status("openai", openai_configured)

    health_status["services"]["webhook"] = {
        "status": "enabled" if settings.webhook_enabled else "disabled"
    }

    if db_healthy and openai_configured:
        status_code = 200
    else:
        health_status["status"] = "unhealthy"
        status_code = 503

    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    if not settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return await get_metrics()


@app.get("/stats")
async def get_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Application statistics"""
    counts = await DatabaseMetricsCollector.collect_from_db(db)
    if counts is None:
        raise HTTPException(status_code=500, detail="Failed to collect stats")

    return {
        "database": {"rows": counts, "pool": get_db_stats()},
        "application": {
            "version": settings.app_version,
            "environment": settings.environment.value,
            "features": {
                "rate_limiting": settings.rate_limit_enabled,
                "metrics": settings.metrics_enabled,
                "webhook": settings.webhook_enabled,
                "redis": bool(settings.redis_url)
            }
        }
    }


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "FloBotz Chat API",
        "version": settings.app_version,
        "environment": settings.environment.value,
        "docs_url": "/docs" if settings.is_development else None,
        "health_url": "/health",
        "metrics_url": "/metrics" if settings.metrics_enabled else None
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
