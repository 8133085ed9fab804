"""
SQLAlchemy models for the CRM subscription service.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id(prefix: str):
    def factory() -> str:
        return f"{prefix}_{uuid.uuid4().hex[:12]}"

    return factory


class User(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True, default=_new_id("user"))
    email = Column(Text, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    role = Column(Text, default="user")
    status = Column(Text, default="pending")
    last_login_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    subscription = relationship(
        "Subscription",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Text, primary_key=True, default=_new_id("sub"))
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    plan_id = Column(Text, nullable=False)
    status = Column(Text, default="active")
    current_period_start = Column(DateTime(timezone=True), nullable=False)
    current_period_end = Column(DateTime(timezone=True), nullable=False)
    cancel_at_period_end = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="subscription")
