"""
In-process scheduler for the daily subscription check.
Sleeps until the next cron fire time and runs the check against the database.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from croniter import croniter

from app.config import settings
from app.database import SessionLocal
from app.integrations.admin_api import AdminApiClient
from app.schemas.subscription import SubscriptionCheckReport
from app.services.notification_service import NotificationService
from app.services.subscription_job import run_subscription_check
from app.services.user_service import load_user_records

logger = logging.getLogger(__name__)

CheckRunner = Callable[[], Awaitable[SubscriptionCheckReport]]


async def run_scheduled_check() -> SubscriptionCheckReport:
    db = SessionLocal()
    try:
        users = load_user_records(db)
    finally:
        db.close()

    admin_api = AdminApiClient()
    notifications = NotificationService()
    return await run_subscription_check(
        users,
        suspend_user=admin_api.suspend_user,
        send_notification=notifications.send_expiry_notification,
    )


class SubscriptionCheckScheduler:
    """Runs the subscription check on a cron schedule."""

    def __init__(
        self,
        schedule_cron: Optional[str] = None,
        runner: Optional[CheckRunner] = None,
    ):
        self.schedule_cron = schedule_cron or settings.subscription_check_cron
        self.runner = runner or run_scheduled_check
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._running = False
        self.last_run_at: datetime | None = None
        self.next_run_at: datetime | None = None

    def start(self) -> None:
        """Start scheduler loop as background task."""
        if self._task and not self._task.done():
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("SubscriptionCheckScheduler started with schedule %r", self.schedule_cron)

    async def stop(self) -> None:
        """Stop scheduler loop and wait for completion."""
        self._stop_event.set()
        if self._task:
            await self._task
        logger.info("SubscriptionCheckScheduler stopped")

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            now = datetime.now(timezone.utc)
            self.next_run_at = self.next_fire_time(now)
            delay = max(0.0, (self.next_run_at - now).total_seconds())
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                break
            except asyncio.TimeoutError:
                pass
            await self.tick()

    def next_fire_time(self, now: datetime) -> datetime:
        """Next cron fire time, never repeating the one that just fired."""
        base = now
        if self.next_run_at is not None and self.next_run_at > now:
            base = self.next_run_at
        return self.compute_next_run(self.schedule_cron, base)

    async def tick(self) -> Optional[SubscriptionCheckReport]:
        if self._running:
            logger.warning("Previous subscription check still running; skipping tick")
            return None
        self._running = True
        try:
            report = await self.runner()
            self.last_run_at = datetime.now(timezone.utc)
            return report
        except Exception as exc:
            logger.exception("Scheduled subscription check failed: %s", exc)
            return None
        finally:
            self._running = False

    @staticmethod
    def compute_next_run(schedule_cron: str, from_dt: datetime) -> datetime:
        return croniter(schedule_cron, from_dt).get_next(datetime)
