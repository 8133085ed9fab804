from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SubscriptionStatus = Literal["active", "cancelled", "expired", "past_due"]
RecommendedActionName = Literal["none", "notify", "suspend", "extend", "upgrade"]
Priority = Literal["low", "medium", "high", "critical"]
Urgency = Literal["low", "medium", "high"]


class CamelModel(BaseModel):
    """Accepts both snake_case and the camelCase names used by the billing contract."""

    model_config = ConfigDict(populate_by_name=True)


class SubscriptionRecord(CamelModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    plan_id: str = Field(alias="planId")
    status: SubscriptionStatus
    current_period_start: datetime = Field(alias="currentPeriodStart")
    current_period_end: datetime = Field(alias="currentPeriodEnd")
    cancel_at_period_end: bool = Field(default=False, alias="cancelAtPeriodEnd")

    @field_validator("current_period_start", "current_period_end")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def check_period_bounds(self) -> "SubscriptionRecord":
        if self.current_period_end <= self.current_period_start:
            raise ValueError("currentPeriodEnd must be after currentPeriodStart")
        return self


class SubscriptionStatusOut(CamelModel):
    user_id: str = Field(alias="userId")
    is_active: bool = Field(alias="isActive")
    is_expired: bool = Field(alias="isExpired")
    days_until_expiry: int = Field(alias="daysUntilExpiry")
    should_suspend: bool = Field(alias="shouldSuspend")
    should_notify: bool = Field(alias="shouldNotify")
    status: SubscriptionStatus
    in_grace_period: bool = Field(alias="inGracePeriod")
    grace_period_days: int = Field(alias="gracePeriodDays")


class RecommendationOut(CamelModel):
    user_id: str = Field(alias="userId")
    action: RecommendedActionName
    priority: Priority
    reason: str


class HealthScoreOut(CamelModel):
    user_id: str = Field(alias="userId")
    score: int = Field(ge=0, le=100)


class CheckSummary(CamelModel):
    total_users: int = Field(alias="totalUsers")
    to_suspend: int = Field(alias="toSuspend")
    to_notify: int = Field(alias="toNotify")
    expired: int


class SuspendedEntry(CamelModel):
    user_id: str = Field(alias="userId")
    email: str
    reason: str


class NotifiedEntry(CamelModel):
    user_id: str = Field(alias="userId")
    email: str
    subject: str
    urgency: Urgency


class ActionError(CamelModel):
    user_id: str = Field(alias="userId")
    action: Literal["suspend", "notify"]
    error: str


class CheckActions(CamelModel):
    suspended: list[SuspendedEntry] = Field(default_factory=list)
    notified: list[NotifiedEntry] = Field(default_factory=list)
    errors: list[ActionError] = Field(default_factory=list)


class SubscriptionCheckReport(CamelModel):
    timestamp: datetime
    summary: CheckSummary
    actions: CheckActions


class EvaluationOut(CamelModel):
    to_suspend: list[str] = Field(alias="toSuspend")
    to_notify: list[str] = Field(alias="toNotify")
    expired: list[str]
    recommendations: list[RecommendationOut]
