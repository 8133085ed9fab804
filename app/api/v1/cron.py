from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.core.security import verify_cron_secret
from app.database import get_db
from app.integrations.admin_api import AdminApiClient
from app.services.notification_service import NotificationService
from app.services.subscription_job import run_subscription_check
from app.services.user_service import load_user_records

logger = logging.getLogger(__name__)

router = APIRouter()


def get_admin_api() -> AdminApiClient:
    return AdminApiClient()


def get_notification_service() -> NotificationService:
    return NotificationService()


@router.post("/check-subscriptions", dependencies=[Depends(verify_cron_secret)])
async def check_subscriptions(
    db: Session = Depends(get_db),
    admin_api: AdminApiClient = Depends(get_admin_api),
    notifications: NotificationService = Depends(get_notification_service),
):
    try:
        users = load_user_records(db)
        report = await run_subscription_check(
            users,
            suspend_user=admin_api.suspend_user,
            send_notification=notifications.send_expiry_notification,
        )
    except Exception as exc:
        logger.exception("Error in subscription check cron job: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process subscription check", "details": str(exc)},
        )

    return {
        "success": True,
        "message": "Subscription check completed",
        "results": report.model_dump(mode="json", by_alias=True),
    }


@router.get("/check-subscriptions")
async def describe_check_subscriptions(test: Optional[str] = None) -> dict:
    if test == "true":
        return {
            "success": True,
            "message": "Subscription check endpoint is working",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "test": True,
        }

    return {
        "endpoint": f"{settings.api_v1_prefix}/cron/check-subscriptions",
        "method": "POST",
        "description": "Cron job endpoint for checking subscription expiry",
        "schedule": settings.subscription_check_cron,
        "actions": [
            "Suspend users with expired subscriptions",
            "Send expiry notifications",
        ],
    }
