from __future__ import annotations

import logging
from typing import Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class AdminApiClient:
    """Calls the admin user-management API to change account state."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.app_url).rstrip("/")
        if api_key is None and settings.admin_api_key is not None:
            api_key = settings.admin_api_key.get_secret_value()
        self.api_key = api_key
        self.users_url = f"{self.base_url}{settings.api_v1_prefix}/admin/users"
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def suspend_user(self, user_id: str, reason: str) -> bool:
        """Return True when the API accepted the suspension."""
        payload = {"userId": user_id, "action": "suspend", "reason": reason}
        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            response = await client.patch(self.users_url, headers=self._headers(), json=payload)
        if not response.is_success:
            logger.error("Suspend failed for user %s: HTTP %s %s", user_id, response.status_code, response.text)
            return False
        return True
