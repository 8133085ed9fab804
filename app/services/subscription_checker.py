"""
Subscription lifecycle rules.

Every function here is pure: the current time is passed in by the caller and
records are never mutated. Thresholds come from a ``SubscriptionPolicy``; when
none is given the configured policy is used.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Literal, Optional

from app.config import SubscriptionPolicy, settings
from app.schemas.subscription import SubscriptionRecord
from app.schemas.user import UserRecord

SECONDS_PER_DAY = 24 * 60 * 60

ClassifiedStatus = Literal["active", "expired", "past_due", "cancelled"]


@dataclass(frozen=True)
class ClassificationResult:
    is_active: bool
    is_expired: bool
    days_until_expiry: int
    signed_days_until_expiry: int
    should_suspend: bool
    should_notify: bool
    status: ClassifiedStatus


@dataclass
class UsersNeedingAction:
    to_suspend: list[UserRecord] = field(default_factory=list)
    to_notify: list[UserRecord] = field(default_factory=list)
    expired: list[UserRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ExpiryNotification:
    subject: str
    message: str
    urgency: Literal["low", "medium", "high"]


@dataclass(frozen=True)
class RecommendedAction:
    action: Literal["none", "notify", "suspend", "extend", "upgrade"]
    priority: Literal["low", "medium", "high", "critical"]
    reason: str


NO_SUBSCRIPTION = ClassificationResult(
    is_active=False,
    is_expired=True,
    days_until_expiry=0,
    signed_days_until_expiry=0,
    should_suspend=True,
    should_notify=False,
    status="expired",
)


def _policy(policy: Optional[SubscriptionPolicy]) -> SubscriptionPolicy:
    return policy if policy is not None else settings.subscription_policy()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(end: datetime, now: datetime) -> int:
    """Whole days from ``now`` to ``end``, rounded up; negative once ``end`` has passed."""
    delta = _as_utc(end) - _as_utc(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def check_subscription_status(
    subscription: Optional[SubscriptionRecord],
    now: datetime,
    policy: Optional[SubscriptionPolicy] = None,
) -> ClassificationResult:
    if subscription is None:
        return NO_SUBSCRIPTION

    policy = _policy(policy)
    signed_days = days_until(subscription.current_period_end, now)

    is_expired = signed_days <= 0
    is_active = subscription.status == "active" and not is_expired
    should_suspend = is_expired and subscription.status != "cancelled"
    should_notify = 0 < signed_days <= policy.notify_window_days

    status: ClassifiedStatus = subscription.status
    if is_expired and subscription.status == "active":
        # Billing status can lag behind the period end.
        status = "expired"

    return ClassificationResult(
        is_active=is_active,
        is_expired=is_expired,
        days_until_expiry=max(0, signed_days),
        signed_days_until_expiry=signed_days,
        should_suspend=should_suspend,
        should_notify=should_notify,
        status=status,
    )


def should_auto_suspend_user(
    user: UserRecord,
    now: datetime,
    policy: Optional[SubscriptionPolicy] = None,
) -> bool:
    return check_subscription_status(user.subscription, now, policy).should_suspend


def get_users_needing_action(
    users: Iterable[UserRecord],
    now: datetime,
    policy: Optional[SubscriptionPolicy] = None,
) -> UsersNeedingAction:
    """Split users into (possibly overlapping) suspend, notify and expired lists, keeping input order."""
    policy = _policy(policy)
    result = UsersNeedingAction()

    for user in users:
        check = check_subscription_status(user.subscription, now, policy)

        if check.should_suspend and user.status == "active":
            result.to_suspend.append(user)

        if check.should_notify:
            result.to_notify.append(user)

        if check.is_expired:
            result.expired.append(user)

    return result


def generate_expiry_notification(
    user: UserRecord,
    now: datetime,
    policy: Optional[SubscriptionPolicy] = None,
) -> ExpiryNotification:
    policy = _policy(policy)
    check = check_subscription_status(user.subscription, now, policy)
    days = check.days_until_expiry

    if days == 0:
        return ExpiryNotification(
            subject="Your subscription has expired",
            message=(
                f"Dear {user.name}, your subscription has expired. "
                "Please renew to continue accessing our services."
            ),
            urgency="high",
        )

    if days <= policy.urgent_notice_days:
        return ExpiryNotification(
            subject="Your subscription expires soon",
            message=(
                f"Dear {user.name}, your subscription expires in {days} days. "
                "Please renew to avoid service interruption."
            ),
            urgency="high",
        )

    return ExpiryNotification(
        subject="Subscription renewal reminder",
        message=(
            f"Dear {user.name}, your subscription will expire in {days} days. "
            "Consider renewing to maintain uninterrupted access."
        ),
        urgency="medium",
    )


def calculate_grace_period(
    subscription: Optional[SubscriptionRecord],
    policy: Optional[SubscriptionPolicy] = None,
) -> int:
    """Days after expiry before suspension; users without a subscription get none."""
    if subscription is None:
        return 0
    return _policy(policy).grace_period_for(subscription.plan_id)


def is_in_grace_period(
    subscription: Optional[SubscriptionRecord],
    now: datetime,
    policy: Optional[SubscriptionPolicy] = None,
) -> bool:
    if subscription is None:
        return False
    policy = _policy(policy)
    check = check_subscription_status(subscription, now, policy)
    grace_period = calculate_grace_period(subscription, policy)
    return check.is_expired and check.signed_days_until_expiry >= -grace_period


def get_subscription_health_score(
    subscription: Optional[SubscriptionRecord],
    now: datetime,
    policy: Optional[SubscriptionPolicy] = None,
) -> int:
    if subscription is None:
        return 0
    check = check_subscription_status(subscription, now, policy)

    if check.is_active:
        if check.days_until_expiry > 30:
            return 100
        if check.days_until_expiry > 14:
            return 80
        if check.days_until_expiry > 7:
            return 60
        return 40

    if check.is_expired:
        days_expired = abs(check.signed_days_until_expiry)
        if days_expired <= 7:
            return 20
        if days_expired <= 30:
            return 10
        return 0

    return 0


def get_recommended_action(
    user: UserRecord,
    now: datetime,
    policy: Optional[SubscriptionPolicy] = None,
) -> RecommendedAction:
    policy = _policy(policy)
    check = check_subscription_status(user.subscription, now, policy)

    if check.is_expired:
        if not is_in_grace_period(user.subscription, now, policy):
            return RecommendedAction(
                action="suspend",
                priority="critical",
                reason="Subscription expired and grace period exceeded",
            )
        return RecommendedAction(
            action="notify",
            priority="high",
            reason="Subscription expired but within grace period",
        )

    if check.should_notify:
        return RecommendedAction(
            action="notify",
            priority="medium",
            reason=f"Subscription expires in {check.days_until_expiry} days",
        )

    if check.is_active and check.days_until_expiry > policy.healthy_after_days:
        return RecommendedAction(
            action="none",
            priority="low",
            reason="Subscription is active and healthy",
        )

    return RecommendedAction(action="none", priority="low", reason="No action required")
