"""
Persistence helpers for users and their subscriptions.

Routes and the scheduled job go through these functions; the lifecycle
rules only ever see the validated ``UserRecord`` snapshots built here.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import Subscription, User
from app.schemas.subscription import SubscriptionRecord
from app.schemas.user import UserCreateRequest, UserOut, UserRecord, UserStats, UserUpdateRequest
from app.services.plans import DEFAULT_PERIOD_DAYS, get_plan

logger = logging.getLogger(__name__)


def _subscription_record(row: Optional[Subscription]) -> Optional[SubscriptionRecord]:
    if row is None:
        return None
    return SubscriptionRecord(
        id=row.id,
        plan_id=row.plan_id,
        status=row.status,
        current_period_start=row.current_period_start,
        current_period_end=row.current_period_end,
        cancel_at_period_end=bool(row.cancel_at_period_end),
    )


def _valid_subscription_record(row: User) -> Optional[SubscriptionRecord]:
    """Return the user's subscription, or None when the stored row does not validate.

    A subscription that cannot be read is evaluated like a missing one:
    expired and due for suspension.
    """
    try:
        return _subscription_record(row.subscription)
    except PydanticValidationError as exc:
        logger.warning(
            "Stored subscription for user %s is invalid, treating it as missing: %s",
            row.id,
            exc.errors(include_url=False),
        )
        return None


def to_user_record(row: User) -> UserRecord:
    try:
        return UserRecord(
            id=row.id,
            email=row.email,
            name=row.name,
            status=row.status,
            subscription=_valid_subscription_record(row),
        )
    except PydanticValidationError as exc:
        raise ValidationError(f"Stored record for user {row.id} is invalid: {exc}") from exc


def serialize_user(row: User) -> UserOut:
    return UserOut(
        id=row.id,
        email=row.email,
        name=row.name,
        role=row.role or "user",
        status=row.status,
        created_at=row.created_at,
        last_login=row.last_login_at,
        subscription=_valid_subscription_record(row),
    )


def get_user(db: Session, user_id: str) -> User:
    user = (
        db.query(User)
        .options(selectinload(User.subscription))
        .filter(User.id == user_id)
        .first()
    )
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def load_user_records(db: Session) -> list[UserRecord]:
    rows = (
        db.query(User)
        .options(selectinload(User.subscription))
        .order_by(User.created_at, User.id)
        .all()
    )
    records = []
    for row in rows:
        try:
            records.append(to_user_record(row))
        except ValidationError as exc:
            logger.error("Skipping user %s in subscription check: %s", row.id, exc)
    return records


def list_users(
    db: Session,
    status: Optional[str] = None,
    subscription_status: Optional[str] = None,
    search: Optional[str] = None,
) -> list[User]:
    query = db.query(User).options(selectinload(User.subscription))
    if status and status != "all":
        query = query.filter(User.status == status)
    if subscription_status and subscription_status != "all":
        query = query.join(User.subscription).filter(Subscription.status == subscription_status)
    if search:
        like = f"%{search.lower()}%"
        query = query.filter(or_(func.lower(User.name).like(like), func.lower(User.email).like(like)))
    return query.order_by(User.created_at, User.id).all()


def user_stats(db: Session) -> UserStats:
    def _count_users(status: str) -> int:
        return db.query(User).filter(User.status == status).count()

    def _count_subscriptions(status: str) -> int:
        return db.query(Subscription).filter(Subscription.status == status).count()

    return UserStats(
        total=db.query(User).count(),
        active=_count_users("active"),
        suspended=_count_users("suspended"),
        expired=_count_subscriptions("expired"),
        past_due=_count_subscriptions("past_due"),
    )


def apply_user_action(db: Session, request: UserUpdateRequest, now: Optional[datetime] = None) -> User:
    now = now or datetime.now(timezone.utc)
    user = get_user(db, request.user_id)

    if request.action == "activate":
        user.status = "active"
    elif request.action == "suspend":
        user.status = "suspended"
        logger.info("User %s suspended: %s", user.id, request.reason or "no reason given")
    elif request.action == "extend_subscription":
        if not request.extension_days:
            raise ValidationError("extensionDays is required to extend a subscription")
        if user.subscription is None:
            raise ValidationError(f"User {user.id} has no subscription to extend")
        user.subscription.current_period_end = (
            user.subscription.current_period_end + timedelta(days=request.extension_days)
        )
        user.subscription.status = "active"
    elif request.action == "update_plan":
        if not request.plan_id or get_plan(request.plan_id) is None:
            raise ValidationError("Invalid subscription plan")
        if user.subscription is None:
            user.subscription = Subscription(
                plan_id=request.plan_id,
                status="active",
                current_period_start=now,
                current_period_end=now + timedelta(days=DEFAULT_PERIOD_DAYS),
            )
        else:
            user.subscription.plan_id = request.plan_id

    db.commit()
    db.refresh(user)
    return user


def create_user(db: Session, request: UserCreateRequest, now: Optional[datetime] = None) -> User:
    now = now or datetime.now(timezone.utc)
    email = request.email.strip().lower()
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise ConflictError("User with this email already exists")

    plan = get_plan(request.subscription_plan)
    if plan is None:
        raise ValidationError("Invalid subscription plan")

    user = User(
        email=email,
        name=request.name.strip(),
        role=request.role,
        status="active" if request.auto_activate else request.status,
    )
    user.subscription = Subscription(
        plan_id=plan.id,
        status="active",
        current_period_start=now,
        current_period_end=now + timedelta(days=DEFAULT_PERIOD_DAYS),
        cancel_at_period_end=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s) on plan %s status=%s", user.id, user.email, plan.name, user.status)
    return user
