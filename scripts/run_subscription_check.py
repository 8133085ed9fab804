"""Run the subscription check once, e.g. from an external cron."""
import asyncio
import json

from app.config import settings
from app.core.logger import configure_logging
from app.services.subscription_scheduler import run_scheduled_check


def main() -> None:
    configure_logging(settings.log_level)
    report = asyncio.run(run_scheduled_check())
    print(json.dumps(report.model_dump(mode="json", by_alias=True), indent=2))


if __name__ == "__main__":
    main()
