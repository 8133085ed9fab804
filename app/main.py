"""
CRM Subscription Service - FastAPI Application
Subscription lifecycle checks, admin user management and the daily expiry job.
"""
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from datetime import datetime, timezone

from app.database import init_db
from app.config import settings
from app.core.logger import configure_logging
from app.core.security import require_admin_api_key
from app.services.subscription_scheduler import SubscriptionCheckScheduler

from app.api.routes import health
from app.api.v1 import cron, subscriptions, users

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)
scheduler = SubscriptionCheckScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting %s...", settings.app_name)

    try:
        init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")

    logger.info(f"API running on {settings.app_env} environment")
    if settings.subscription_check_enabled:
        scheduler.start()
        app.state.subscription_scheduler = scheduler
    yield
    if settings.subscription_check_enabled:
        await scheduler.stop()
    logger.info("Shutting down %s...", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="Subscription lifecycle API for the CRM platform",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


prefix = settings.api_v1_prefix

app.include_router(health.router, prefix=prefix, tags=["Health"])
app.include_router(cron.router, prefix=f"{prefix}/cron", tags=["Cron"])
app.include_router(
    subscriptions.router,
    prefix=f"{prefix}/subscriptions",
    tags=["Subscriptions"],
    dependencies=[Depends(require_admin_api_key)],
)
app.include_router(
    users.router,
    prefix=f"{prefix}/admin/users",
    tags=["Admin Users"],
    dependencies=[Depends(require_admin_api_key)],
)
