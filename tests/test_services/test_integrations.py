from __future__ import annotations

import json

import httpx
import pytest

from app.core.exceptions import IntegrationError
from app.integrations.admin_api import AdminApiClient
from app.integrations.email import EmailService
from app.services.notification_service import NotificationService
from app.services.subscription_checker import ExpiryNotification


@pytest.mark.asyncio
async def test_admin_api_suspend_sends_contract_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    client = AdminApiClient(
        base_url="http://crm.test/", api_key="admin-key", transport=httpx.MockTransport(handler)
    )

    assert await client.suspend_user("user_1", "Subscription expired") is True
    assert seen["method"] == "PATCH"
    assert seen["url"] == "http://crm.test/api/v1/admin/users"
    assert seen["auth"] == "Bearer admin-key"
    assert seen["body"] == {"userId": "user_1", "action": "suspend", "reason": "Subscription expired"}


@pytest.mark.asyncio
async def test_admin_api_non_2xx_is_reported_as_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(404, json={"detail": "User not found"}))
    client = AdminApiClient(base_url="http://crm.test", api_key="k", transport=transport)
    assert await client.suspend_user("missing", "Subscription expired") is False


@pytest.mark.asyncio
async def test_email_service_without_transport_configured_raises():
    service = EmailService()
    service.sendgrid_key = None
    service.smtp_host = None
    with pytest.raises(IntegrationError):
        await service.send_email("a@example.com", "Subject", "<p>Body</p>")


@pytest.mark.asyncio
async def test_notification_service_sends_via_sendgrid(make_user):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        return httpx.Response(202, headers={"X-Message-Id": "msg-1"})

    email = EmailService(transport=httpx.MockTransport(handler))
    email.sendgrid_key = "sg-key"
    service = NotificationService(email_service=email)
    notice = ExpiryNotification(
        subject="Your subscription expires soon",
        message="Dear User, your subscription expires in 2 days. <Renew>",
        urgency="high",
    )

    result = await service.send_expiry_notification(make_user("user_1", days_left=2), notice)

    assert result == {"status": "sent", "message_id": "msg-1", "to": "user_1@example.com"}
    assert captured["body"]["subject"] == "Your subscription expires soon"
    assert captured["body"]["personalizations"] == [{"to": [{"email": "user_1@example.com"}]}]
    assert "&lt;Renew&gt;" in captured["body"]["content"][0]["value"]


@pytest.mark.asyncio
async def test_sendgrid_rejection_raises_integration_error():
    email = EmailService(transport=httpx.MockTransport(lambda request: httpx.Response(401)))
    email.sendgrid_key = "bad"
    with pytest.raises(IntegrationError):
        await email.send_email("a@example.com", "Subject", "<p>Body</p>")
