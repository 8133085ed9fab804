import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('SUBSCRIPTION_CHECK_ENABLED', 'false')
os.environ.pop('CRON_SECRET', None)
os.environ.pop('ADMIN_API_KEY', None)
os.environ.pop('SENDGRID_API_KEY', None)

from app.schemas.subscription import SubscriptionRecord  # noqa: E402
from app.schemas.user import UserRecord  # noqa: E402

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


def _make_subscription(days_left, status='active', plan_id='starter', now=NOW):
    end = now + timedelta(days=days_left)
    return SubscriptionRecord(
        id='sub_1',
        plan_id=plan_id,
        status=status,
        current_period_start=end - timedelta(days=30),
        current_period_end=end,
    )


def _make_user(user_id='user_1', days_left=None, status='active', sub_status='active', plan_id='starter'):
    subscription = None
    if days_left is not None:
        subscription = _make_subscription(days_left, status=sub_status, plan_id=plan_id)
    return UserRecord(
        id=user_id,
        email=f'{user_id}@example.com',
        name=user_id.replace('_', ' ').title(),
        status=status,
        subscription=subscription,
    )


@pytest.fixture
def make_subscription():
    return _make_subscription


@pytest.fixture
def make_user():
    return _make_user


@pytest.fixture
def db_session():
    from app.database import SessionLocal, engine
    from app.models import Base

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient

    from app.main import app

    return TestClient(app)
