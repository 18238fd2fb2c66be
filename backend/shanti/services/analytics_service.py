# analytics service — builds the live schedule summary for an owner
# today's status counts, hourly buckets, day-over-day trends and an activity feed.
# build_summary does the store reads, compute_summary is the pure part.

import logging
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from shanti.config import settings
from shanti.models.analytics import ActivityItem, AnalyticsSummary, HourlyBucket, Trends
from shanti.models.schedule import STATUSES
from shanti.services.db import Database
from shanti.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)

DEFAULT_THERAPY_LABEL = "Therapy Session"


def clinic_timezone() -> tzinfo:
    """timezone used for "today" and hourly buckets.
    always a named zone so day bounds follow dst changes."""
    return ZoneInfo(settings.CLINIC_TIMEZONE or "UTC")


def _aware(value: datetime) -> datetime:
    # mongo hands back naive utc unless the client is tz_aware
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def day_bounds(now: datetime, tz: tzinfo) -> tuple[datetime, datetime, datetime, datetime]:
    """local midnight boundaries: (start_today, end_today, start_yesterday, end_yesterday)"""
    local_today = _aware(now).astimezone(tz).date()
    start_today = datetime.combine(local_today, time.min, tzinfo=tz)
    end_today = datetime.combine(local_today + timedelta(days=1), time.min, tzinfo=tz)
    start_yesterday = datetime.combine(local_today - timedelta(days=1), time.min, tzinfo=tz)
    return start_today, end_today, start_yesterday, start_today


def _pct(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100


def _activity_item(doc: dict, now: datetime) -> ActivityItem:
    updated_at = doc.get("updated_at")
    when = _aware(updated_at) if isinstance(updated_at, datetime) else now

    status = doc.get("status")
    action = status if status in ("completed", "cancelled") else "scheduled"

    return ActivityItem(
        time=when.astimezone(timezone.utc).isoformat(),
        action=action,
        patient=str(doc.get("therapist_id", "")),
        therapy=doc.get("notes") or DEFAULT_THERAPY_LABEL,
    )


def compute_summary(
    today_docs: list[dict],
    yesterday_docs: list[dict],
    recent_docs: list[dict],
    now: datetime,
    tz: tzinfo,
) -> AnalyticsSummary:
    """assemble the summary from already-fetched record sets"""
    status_counts = {status: 0 for status in STATUSES}
    hourly = {hour: {"scheduled": 0, "completed": 0, "cancelled": 0} for hour in range(24)}

    for doc in today_docs:
        status = doc.get("status", "scheduled")
        status_counts[status] = status_counts.get(status, 0) + 1

        start_time = doc.get("start_time")
        if isinstance(start_time, datetime) and status in STATUSES:
            hour = _aware(start_time).astimezone(tz).hour
            hourly[hour][status] += 1

    today_completed = status_counts["completed"]
    today_cancelled = status_counts["cancelled"]
    today_closed = today_completed + today_cancelled

    yesterday_completed = sum(1 for d in yesterday_docs if d.get("status") == "completed")
    yesterday_cancelled = sum(1 for d in yesterday_docs if d.get("status") == "cancelled")
    yesterday_closed = yesterday_completed + yesterday_cancelled

    completion_trend = 0.0
    if yesterday_closed > 0:
        completion_trend = (
            today_completed / max(1, today_closed) - yesterday_completed / yesterday_closed
        ) * 100

    cancellation_rate = _pct(today_cancelled, today_closed)
    success_rate = _pct(today_completed, today_closed)

    return AnalyticsSummary(
        timestamp=_aware(now).astimezone(timezone.utc).isoformat(),
        statusCounts=status_counts,
        hourly=[HourlyBucket(hour=hour, **counts) for hour, counts in hourly.items()],
        successRate=round(success_rate, 2),
        totalSessions=len(today_docs),
        recentActivity=[_activity_item(doc, now) for doc in recent_docs],
        trends=Trends(
            completionTrend=round(completion_trend, 2),
            cancellationRate=round(cancellation_rate, 2),
            averageSessionsPerDay=round(float(len(today_docs)), 1),
        ),
    )


async def build_summary(owner_id: str, db: Database, now: Optional[datetime] = None) -> AnalyticsSummary:
    """read today's, yesterday's and recent records for the owner and summarise them.
    store errors propagate, a partial summary is never returned."""
    now = now or datetime.now(timezone.utc)
    tz = clinic_timezone()
    start_today, end_today, start_yesterday, end_yesterday = day_bounds(now, tz)
    store = ScheduleStore(db)

    today_docs = await store.find({
        "owner_id": owner_id,
        "start_time": {"$gte": start_today, "$lt": end_today},
    })
    yesterday_docs = await store.find({
        "owner_id": owner_id,
        "start_time": {"$gte": start_yesterday, "$lt": end_yesterday},
    })

    # activity window is anchored on local midnight, not on now
    week_ago = start_today - timedelta(days=settings.RECENT_ACTIVITY_DAYS)
    recent_docs = await store.find(
        {"owner_id": owner_id, "updated_at": {"$gte": week_ago}},
        sort=[("updated_at", -1)],
        limit=settings.RECENT_ACTIVITY_LIMIT,
    )

    logger.debug(
        f"Summary for {owner_id}: {len(today_docs)} today, "
        f"{len(yesterday_docs)} yesterday, {len(recent_docs)} recent"
    )
    return compute_summary(today_docs, yesterday_docs, recent_docs, now, tz)
