from __future__ import annotations

import asyncio

import pytest

from app.config import SubscriptionPolicy
from app.core.exceptions import IntegrationError
from app.services.subscription_job import SUSPEND_REASON, run_subscription_check


class RecordingCollaborators:
    def __init__(self, failing_suspend=(), rejected_suspend=(), failing_notify=()):
        self.failing_suspend = set(failing_suspend)
        self.rejected_suspend = set(rejected_suspend)
        self.failing_notify = set(failing_notify)
        self.suspended: list[tuple[str, str]] = []
        self.notified: list[tuple[str, str]] = []

    async def suspend_user(self, user_id: str, reason: str) -> bool:
        if user_id in self.failing_suspend:
            raise RuntimeError("connection refused")
        if user_id in self.rejected_suspend:
            return False
        self.suspended.append((user_id, reason))
        return True

    async def send_notification(self, user, notification) -> dict:
        if user.id in self.failing_notify:
            raise IntegrationError("SMTP is not configured and SendGrid key is missing")
        self.notified.append((user.email, notification.subject))
        return {"status": "sent"}


@pytest.mark.asyncio
async def test_run_suspends_and_notifies(now, make_user):
    users = [
        make_user("user_a", days_left=-2),
        make_user("user_b", days_left=3),
        make_user("user_c", days_left=40),
        make_user("user_d"),
    ]
    collab = RecordingCollaborators()

    report = await run_subscription_check(
        users, collab.suspend_user, collab.send_notification, now=now, policy=SubscriptionPolicy()
    )

    assert report.timestamp == now
    assert report.summary.total_users == 4
    assert report.summary.to_suspend == 2
    assert report.summary.to_notify == 1
    assert report.summary.expired == 2
    assert collab.suspended == [("user_a", SUSPEND_REASON), ("user_d", SUSPEND_REASON)]
    assert collab.notified == [("user_b@example.com", "Your subscription expires soon")]
    assert [s.user_id for s in report.actions.suspended] == ["user_a", "user_d"]
    assert report.actions.notified[0].urgency == "high"
    assert report.actions.errors == []


@pytest.mark.asyncio
async def test_failures_are_recorded_and_batch_continues(now, make_user):
    users = [
        make_user("user_a", days_left=-2),
        make_user("user_b", days_left=-3),
        make_user("user_c", days_left=-4),
        make_user("user_d", days_left=2),
        make_user("user_e", days_left=6),
    ]
    collab = RecordingCollaborators(
        failing_suspend={"user_a"}, rejected_suspend={"user_b"}, failing_notify={"user_d"}
    )

    report = await run_subscription_check(
        users, collab.suspend_user, collab.send_notification, now=now, concurrency=2
    )

    assert [s.user_id for s in report.actions.suspended] == ["user_c"]
    assert [n.user_id for n in report.actions.notified] == ["user_e"]
    errors = [(e.user_id, e.action, e.error) for e in report.actions.errors]
    assert errors == [
        ("user_a", "suspend", "connection refused"),
        ("user_b", "suspend", "Failed to suspend user"),
        ("user_d", "notify", "SMTP is not configured and SendGrid key is missing"),
    ]


@pytest.mark.asyncio
async def test_report_serializes_to_camel_case_contract(now, make_user):
    collab = RecordingCollaborators()
    report = await run_subscription_check(
        [make_user("user_a", days_left=-2)], collab.suspend_user, collab.send_notification, now=now
    )

    payload = report.model_dump(mode="json", by_alias=True)

    assert payload["summary"] == {"totalUsers": 1, "toSuspend": 1, "toNotify": 0, "expired": 1}
    assert payload["actions"]["suspended"] == [
        {"userId": "user_a", "email": "user_a@example.com", "reason": "Subscription expired"}
    ]
    assert payload["actions"]["notified"] == []
    assert payload["actions"]["errors"] == []


@pytest.mark.asyncio
async def test_empty_population(now):
    collab = RecordingCollaborators()
    report = await run_subscription_check([], collab.suspend_user, collab.send_notification, now=now)
    assert report.summary.total_users == 0
    assert report.actions.suspended == []


@pytest.mark.asyncio
async def test_concurrency_bounds_in_flight_calls(now, make_user):
    in_flight = 0
    peak = 0

    async def suspend_user(user_id, reason):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return True

    async def send_notification(user, notification):
        return {"status": "sent"}

    users = [make_user(f"user_{i}", days_left=-1) for i in range(6)]

    report = await run_subscription_check(
        users, suspend_user, send_notification, now=now, concurrency=2
    )

    assert len(report.actions.suspended) == 6
    assert peak == 2
