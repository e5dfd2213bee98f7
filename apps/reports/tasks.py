# apps/reports/tasks.py
import logging
from datetime import date, datetime, timedelta, timezone as dt_timezone

from celery import shared_task

from . import services

logger = logging.getLogger(__name__)


def _resolve_day(day_str: str | None) -> date:
    if day_str:
        return datetime.strptime(day_str, "%Y-%m-%d").date()
    # Runs shortly after midnight UTC: archive the day that just ended
    return datetime.now(dt_timezone.utc).date() - timedelta(days=1)


@shared_task
def snapshot_daily_report(day_str: str | None = None):
    day = _resolve_day(day_str)
    logger.info("Starting daily report snapshot for %s", day)

    snapshot = services.snapshot_daily_report(day)

    logger.info("Completed daily report snapshot for %s", day)
    return str(snapshot.date)
