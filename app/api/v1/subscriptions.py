from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.database import get_db
from app.schemas.subscription import (
    EvaluationOut,
    HealthScoreOut,
    RecommendationOut,
    SubscriptionStatusOut,
)
from app.schemas.user import UserRecord
from app.services.subscription_checker import (
    calculate_grace_period,
    check_subscription_status,
    get_recommended_action,
    get_subscription_health_score,
    get_users_needing_action,
    is_in_grace_period,
)
from app.services.user_service import get_user, to_user_record

router = APIRouter()


def _load_record(db: Session, user_id: str) -> UserRecord:
    try:
        return to_user_record(get_user(db, user_id))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _recommendation(user: UserRecord, now: datetime) -> RecommendationOut:
    rec = get_recommended_action(user, now, settings.subscription_policy())
    return RecommendationOut(user_id=user.id, action=rec.action, priority=rec.priority, reason=rec.reason)


@router.get("/{user_id}/status", response_model=SubscriptionStatusOut)
async def subscription_status(user_id: str, db: Session = Depends(get_db)):
    user = _load_record(db, user_id)
    now = datetime.now(timezone.utc)
    policy = settings.subscription_policy()
    check = check_subscription_status(user.subscription, now, policy)
    return SubscriptionStatusOut(
        user_id=user.id,
        is_active=check.is_active,
        is_expired=check.is_expired,
        days_until_expiry=check.days_until_expiry,
        should_suspend=check.should_suspend,
        should_notify=check.should_notify,
        status=check.status,
        in_grace_period=is_in_grace_period(user.subscription, now, policy),
        grace_period_days=calculate_grace_period(user.subscription, policy),
    )


@router.get("/{user_id}/recommendation", response_model=RecommendationOut)
async def subscription_recommendation(user_id: str, db: Session = Depends(get_db)):
    user = _load_record(db, user_id)
    return _recommendation(user, datetime.now(timezone.utc))


@router.get("/{user_id}/health", response_model=HealthScoreOut)
async def subscription_health(user_id: str, db: Session = Depends(get_db)):
    user = _load_record(db, user_id)
    score = get_subscription_health_score(
        user.subscription, datetime.now(timezone.utc), settings.subscription_policy()
    )
    return HealthScoreOut(user_id=user.id, score=score)


@router.post("/evaluate", response_model=EvaluationOut)
async def evaluate_users(users: list[UserRecord]):
    """Dry run: report which of the posted users would be suspended or notified."""
    now = datetime.now(timezone.utc)
    partition = get_users_needing_action(users, now, settings.subscription_policy())
    return EvaluationOut(
        to_suspend=[u.id for u in partition.to_suspend],
        to_notify=[u.id for u in partition.to_notify],
        expired=[u.id for u in partition.expired],
        recommendations=[_recommendation(u, now) for u in users],
    )
