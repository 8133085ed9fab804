"""
Daily subscription check.

Suspends accounts whose subscription lapsed and emails renewal reminders.
Each user is handled independently: a failed suspend or notify call is
recorded in the report and the rest of the batch carries on.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Sequence

from app.config import SubscriptionPolicy, settings
from app.schemas.subscription import (
    ActionError,
    CheckActions,
    CheckSummary,
    NotifiedEntry,
    SubscriptionCheckReport,
    SuspendedEntry,
)
from app.schemas.user import UserRecord
from app.services.subscription_checker import (
    ExpiryNotification,
    generate_expiry_notification,
    get_users_needing_action,
)

logger = logging.getLogger(__name__)

SUSPEND_REASON = "Subscription expired"

Suspender = Callable[[str, str], Awaitable[bool]]
Notifier = Callable[[UserRecord, ExpiryNotification], Awaitable[Any]]


async def run_subscription_check(
    users: Sequence[UserRecord],
    suspend_user: Suspender,
    send_notification: Notifier,
    now: Optional[datetime] = None,
    policy: Optional[SubscriptionPolicy] = None,
    concurrency: Optional[int] = None,
) -> SubscriptionCheckReport:
    now = now or datetime.now(timezone.utc)
    policy = policy or settings.subscription_policy()
    semaphore = asyncio.Semaphore(concurrency or settings.subscription_check_concurrency)

    partition = get_users_needing_action(users, now, policy)

    async def _suspend(user: UserRecord) -> SuspendedEntry | ActionError:
        async with semaphore:
            try:
                ok = await suspend_user(user.id, SUSPEND_REASON)
            except Exception as exc:
                logger.warning("Suspend call failed for user %s: %s", user.id, exc)
                return ActionError(user_id=user.id, action="suspend", error=str(exc) or "Unknown error")
        if not ok:
            return ActionError(user_id=user.id, action="suspend", error="Failed to suspend user")
        return SuspendedEntry(user_id=user.id, email=user.email, reason=SUSPEND_REASON)

    async def _notify(user: UserRecord) -> NotifiedEntry | ActionError:
        async with semaphore:
            try:
                notification = generate_expiry_notification(user, now, policy)
                await send_notification(user, notification)
            except Exception as exc:
                logger.warning("Notification failed for user %s: %s", user.id, exc)
                return ActionError(user_id=user.id, action="notify", error=str(exc) or "Unknown error")
        return NotifiedEntry(
            user_id=user.id,
            email=user.email,
            subject=notification.subject,
            urgency=notification.urgency,
        )

    suspend_results = await asyncio.gather(*(_suspend(u) for u in partition.to_suspend))
    notify_results = await asyncio.gather(*(_notify(u) for u in partition.to_notify))

    actions = CheckActions()
    for outcome in suspend_results:
        if isinstance(outcome, ActionError):
            actions.errors.append(outcome)
        else:
            actions.suspended.append(outcome)
    for outcome in notify_results:
        if isinstance(outcome, ActionError):
            actions.errors.append(outcome)
        else:
            actions.notified.append(outcome)

    report = SubscriptionCheckReport(
        timestamp=now,
        summary=CheckSummary(
            total_users=len(users),
            to_suspend=len(partition.to_suspend),
            to_notify=len(partition.to_notify),
            expired=len(partition.expired),
        ),
        actions=actions,
    )
    logger.info(
        "Subscription check completed: total=%s suspended=%s notified=%s errors=%s",
        report.summary.total_users,
        len(actions.suspended),
        len(actions.notified),
        len(actions.errors),
    )
    return report
