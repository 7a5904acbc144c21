"""
Statistics Service - summary counts for the dashboard.

All counts come from a single pass over the collection. A caller either gets
every bucket (zero-filled) or a StatsUnavailable error, never partial data.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional
import logging

from app.config.firebase import get_db
from app.core.errors import StatsUnavailable
from app.models.cleanup_request import CleanupStats, RequestStatus, Severity, SeverityStats
from app.models.user import UserStats, UserStatus
from app.utils.firestore_helpers import to_datetime, utcnow

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)


def local_midnight(now: datetime) -> datetime:
    """Start of the current calendar day in the server's local timezone."""
    return now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)


def aggregate_request_stats(records: Iterable[Dict], now: datetime) -> CleanupStats:
    status_counts = {status.value: 0 for status in RequestStatus}
    severity_counts = {severity.value: 0 for severity in Severity}
    week_ago = now - RECENT_WINDOW
    today = local_midnight(now)
    total = recent = today_count = 0

    for record in records:
        total += 1
        status = record.get("status")
        if status in status_counts:
            status_counts[status] += 1
        severity = record.get("severity")
        if severity in severity_counts:
            severity_counts[severity] += 1

        created_at = to_datetime(record.get("created_at"))
        if created_at is None:
            continue
        if created_at >= week_ago:
            recent += 1
        if created_at >= today:
            today_count += 1

    return CleanupStats(
        total=total,
        pending=status_counts[RequestStatus.PENDING.value],
        in_progress=status_counts[RequestStatus.IN_PROGRESS.value],
        completed=status_counts[RequestStatus.COMPLETED.value],
        cancelled=status_counts[RequestStatus.CANCELLED.value],
        severity=SeverityStats(**severity_counts),
        recent_requests=recent,
        today_requests=today_count,
    )


def aggregate_user_stats(users: Iterable[Dict], now: datetime) -> UserStats:
    week_ago = now - RECENT_WINDOW
    stats = UserStats()
    for user in users:
        stats.total_users += 1
        if user.get("status") == UserStatus.ACTIVE.value:
            stats.active_users += 1
        if user.get("email_verified"):
            stats.verified_users += 1
        registered_at = to_datetime(user.get("registered_at"))
        if registered_at and registered_at >= week_ago:
            stats.new_users_this_week += 1
    return stats


class StatsService:
    """Aggregations over the cleanup_requests and users collections."""

    def __init__(self):
        self.db = get_db()

    def get_request_stats(self, now: Optional[datetime] = None) -> CleanupStats:
        now = now or utcnow()
        try:
            docs = self.db.collection("cleanup_requests").stream()
            stats = aggregate_request_stats((doc.to_dict() or {} for doc in docs), now)
        except Exception as e:
            logger.error(f"Failed to aggregate cleanup request stats: {e}", exc_info=True)
            raise StatsUnavailable() from e

        logger.info(f"Computed stats over {stats.total} cleanup requests")
        return stats

    def get_user_stats(self, now: Optional[datetime] = None) -> UserStats:
        now = now or utcnow()
        try:
            docs = self.db.collection("users").stream()
            return aggregate_user_stats((doc.to_dict() or {} for doc in docs), now)
        except Exception as e:
            logger.error(f"Failed to aggregate user stats: {e}", exc_info=True)
            raise StatsUnavailable() from e


# Global service instance (singleton pattern)
_stats_service = None


def get_stats_service() -> StatsService:
    global _stats_service
    if _stats_service is None:
        _stats_service = StatsService()
    return _stats_service
