from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.models import Subscription, User

# (email, name, role, account status, plan, subscription status, days until period end)
DEMO_USERS: list[tuple[Any, ...]] = [
    ("john@example.com", "John Smith", "admin", "active", "pro", "active", 45),
    ("sarah@example.com", "Sarah Johnson", "user", "active", "starter", "active", 3),
    ("mike@example.com", "Mike Wilson", "user", "active", "business", "expired", -5),
    ("lena@example.com", "Lena Ortiz", "user", "active", "standard", "active", -20),
    ("omar@example.com", "Omar Haddad", "user", "suspended", "enterprise", "cancelled", -2),
]


def seed_demo_users(db: Session, now: datetime | None = None) -> int:
    if db.query(User).count() > 0:
        return 0

    now = now or datetime.now(timezone.utc)
    for email, name, role, status, plan_id, sub_status, days_left in DEMO_USERS:
        period_end = now + timedelta(days=days_left)
        user = User(email=email, name=name, role=role, status=status)
        user.subscription = Subscription(
            plan_id=plan_id,
            status=sub_status,
            current_period_start=period_end - timedelta(days=30),
            current_period_end=period_end,
            cancel_at_period_end=sub_status == "cancelled",
        )
        db.add(user)
    db.commit()
    return len(DEMO_USERS)
