from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import ConfigDict, Field

from app.schemas.subscription import CamelModel, SubscriptionRecord

AccountStatus = Literal["active", "suspended", "pending"]
UserAction = Literal["activate", "suspend", "extend_subscription", "update_plan"]


class UserRecord(CamelModel):
    """A user as consumed by the subscription evaluator."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    email: str
    name: str
    status: AccountStatus
    subscription: Optional[SubscriptionRecord] = None


class UserOut(CamelModel):
    id: str
    email: str
    name: str
    role: str
    status: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    last_login: Optional[datetime] = Field(default=None, alias="lastLogin")
    subscription: Optional[SubscriptionRecord] = None


class UserStats(CamelModel):
    total: int
    active: int
    suspended: int
    expired: int
    past_due: int = Field(alias="pastDue")


class UserListOut(CamelModel):
    users: list[UserOut]
    total: int
    stats: UserStats


class UserUpdateRequest(CamelModel):
    user_id: str = Field(alias="userId")
    action: UserAction
    plan_id: Optional[str] = Field(default=None, alias="planId")
    extension_days: Optional[int] = Field(default=None, ge=1, le=3650, alias="extensionDays")
    reason: Optional[str] = None


class UserCreateRequest(CamelModel):
    email: str = Field(min_length=3)
    name: str = Field(min_length=1)
    subscription_plan: str = Field(alias="subscriptionPlan")
    role: Literal["admin", "user"] = "user"
    status: AccountStatus = "pending"
    auto_activate: bool = Field(default=False, alias="autoActivate")


class UserMutationOut(CamelModel):
    success: bool = True
    message: str
    user: UserOut
