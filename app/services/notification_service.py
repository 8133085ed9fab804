from __future__ import annotations

import html
from typing import Any, Optional

from app.core.logger import get_logger
from app.integrations.email import EmailService
from app.schemas.user import UserRecord
from app.services.subscription_checker import ExpiryNotification

logger = get_logger(__name__)


class NotificationService:
    """Delivers subscription expiry notices to account owners."""

    def __init__(self, email_service: Optional[EmailService] = None):
        self.email_service = email_service or EmailService()

    async def send_expiry_notification(
        self, user: UserRecord, notification: ExpiryNotification
    ) -> dict[str, Any]:
        logger.info(
            'Sending expiry notice user=%s email=%s urgency=%s',
            user.id,
            user.email,
            notification.urgency,
        )
        return await self.email_service.send_email(
            to=user.email,
            subject=notification.subject,
            html_content=f"<p>{html.escape(notification.message)}</p>",
        )
