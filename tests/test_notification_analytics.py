import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from ajira_admin.services.notification_analytics import build_notification_analytics, get_notification_analytics

NOW = datetime(2025, 6, 15, 10, 0, tzinfo=timezone.utc)


def test_overview_and_engagement():
    notifications = [
        {"sent_at": NOW - timedelta(days=2), "delivery_count": 80, "read_count": 20,
         "recipient_type": "all", "recipient_uids": ["a", "b", "c"], "sent_by": "ops@ajira"},
        {"sent_at": NOW - timedelta(days=20), "delivery_count": 40, "read_count": 10,
         "recipient_type": "seekers", "recipient_uids": ["a"], "sent_by": "ops@ajira"},
        {"sent_at": NOW - timedelta(days=90), "delivery_count": 0, "read_count": 0,
         "recipient_type": None, "recipient_uids": None, "sent_by": None},
    ]
    result = build_notification_analytics(notifications, NOW)

    assert result.overview.total_notifications == 3
    assert result.overview.total_delivered == 120
    assert result.overview.total_read == 30
    assert result.overview.notifications_last_7_days == 1
    assert result.overview.notifications_last_30_days == 2
    assert result.overview.delivered_last_30_days == 120
    assert result.overview.avg_recipients_per_notification == pytest.approx(1.3)
    assert result.engagement.delivery_rate == pytest.approx(4000.0)
    assert result.engagement.read_rate == pytest.approx(25.0)
    assert {r.name: r.value for r in result.recipient_types} == {"all": 1, "seekers": 1, "Unknown": 1}

    senders = {s.sender: (s.count, s.delivered) for s in result.top_senders}
    assert senders == {"ops@ajira": (2, 120), "System": (1, 0)}
    assert result.top_senders[0].sender == "ops@ajira"


def test_growth_months_oldest_first():
    notifications = [
        {"sent_at": datetime(2025, 1, 10, tzinfo=timezone.utc), "delivery_count": 5, "read_count": 1},
        {"sent_at": datetime(2025, 6, 1, tzinfo=timezone.utc), "delivery_count": 7, "read_count": 2},
        {"sent_at": datetime(2024, 11, 1, tzinfo=timezone.utc), "delivery_count": 9, "read_count": 3},
    ]
    growth = build_notification_analytics(notifications, NOW).growth
    assert [m.month for m in growth] == ["Jan 2025", "Feb 2025", "Mar 2025", "Apr 2025", "May 2025", "Jun 2025"]
    assert (growth[0].sent, growth[0].delivered, growth[0].read) == (1, 5, 1)
    assert (growth[-1].sent, growth[-1].delivered) == (1, 7)
    assert sum(m.sent for m in growth) == 2


def test_empty_history_rates_are_zero():
    result = build_notification_analytics([], NOW)
    assert result.engagement.delivery_rate == 0
    assert result.engagement.read_rate == 0
    assert result.overview.avg_recipients_per_notification == 0


def test_get_notification_analytics_reads_store(session_factory, notification_factory):
    notification_factory(sent_at=NOW - timedelta(days=1), delivery_count=10, read_count=4, recipient_uids=["u1", "u2"])
    notification_factory(sent_at=NOW - timedelta(days=12), delivery_count=6, read_count=0, sent_by="admin")

    result = asyncio.run(get_notification_analytics(session_factory, now=NOW))

    assert result.overview.total_notifications == 2
    assert result.overview.total_delivered == 16
    assert result.overview.notifications_last_7_days == 1
    assert result.engagement.read_rate == pytest.approx(25.0)
    assert {s.sender for s in result.top_senders} == {"admin", "System"}
