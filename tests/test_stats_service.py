from datetime import timedelta

import pytest

from app.core.errors import StatsUnavailable
from app.services.stats_service import (
    aggregate_request_stats,
    aggregate_user_stats,
    get_stats_service,
    local_midnight,
)
from tests.conftest import utc

NOW = utc(2026, 10, 19, 12, 0)


def test_empty_collection_is_all_zeros():
    stats = aggregate_request_stats([], NOW)
    assert stats.total == 0
    assert stats.model_dump(by_alias=True) == {
        "total": 0, "pending": 0, "in-progress": 0, "completed": 0, "cancelled": 0,
        "severity": {"low": 0, "medium": 0, "high": 0},
        "recentRequests": 0, "todayRequests": 0,
    }


def test_counts_partition_the_collection():
    records = [
        {"status": "pending", "severity": "low", "created_at": NOW},
        {"status": "pending", "severity": "high", "created_at": NOW - timedelta(days=3)},
        {"status": "in-progress", "severity": "medium", "created_at": NOW - timedelta(days=10)},
        {"status": "completed", "severity": "high", "created_at": NOW - timedelta(days=30)},
        {"status": "cancelled", "severity": "medium", "created_at": None},
    ]
    stats = aggregate_request_stats(records, NOW)

    assert stats.total == 5
    assert stats.pending + stats.in_progress + stats.completed + stats.cancelled == stats.total
    assert stats.severity.low + stats.severity.medium + stats.severity.high == stats.total
    assert (stats.pending, stats.in_progress, stats.completed, stats.cancelled) == (2, 1, 1, 1)
    assert stats.recent_requests == 2
    assert stats.today_requests == 1


def test_today_starts_at_local_midnight():
    midnight = local_midnight(NOW)
    assert midnight <= NOW
    assert NOW - midnight < timedelta(days=1)
    assert (midnight.hour, midnight.minute, midnight.second) == (0, 0, 0)


def test_timestamps_as_strings_are_understood():
    stats = aggregate_request_stats([{"status": "pending", "severity": "low", "created_at": "2026-10-18T12:00:00Z"}], NOW)
    assert stats.recent_requests == 1


def test_user_stats():
    users = [
        {"status": "active", "email_verified": True, "registered_at": NOW - timedelta(days=1)},
        {"status": "suspended", "email_verified": False, "registered_at": NOW - timedelta(days=20)},
        {"status": "active", "email_verified": False, "registered_at": NOW},
    ]
    stats = aggregate_user_stats(users, NOW)
    assert (stats.total_users, stats.active_users, stats.verified_users, stats.new_users_this_week) == (3, 2, 1, 2)


def test_storage_failure_means_no_partial_stats(monkeypatch):
    service = get_stats_service()

    def broken(name):
        raise ConnectionError("firestore down")

    monkeypatch.setattr(service.db, "collection", broken)
    with pytest.raises(StatsUnavailable):
        service.get_request_stats()
