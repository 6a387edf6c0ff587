"""Push broadcast analytics over ``notification_history``."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ajira_admin.config import ANALYTICS_SETTINGS
from ajira_admin.models.schemas import NameValue, NotificationAnalytics
from ajira_admin.models.schemas.analytics import (
    NotificationEngagement,
    NotificationMonth,
    NotificationOverview,
    SenderActivity,
)
from ajira_admin.services.bulk_fetcher import SessionFactory, Table, TableQuery, fetch_all_async
from ajira_admin.services.revenue_reconciliation import rows_in_window
from ajira_admin.utils import get_logger
from ajira_admin.utils.metrics import count_by, safe_div, to_number
from ajira_admin.utils.time import start_of_month, sub_days, sub_months, utc_now

logger = get_logger(__name__)

Rows = list[Mapping[str, Any]]


def _delivered(rows: Rows) -> int:
    return int(sum(to_number(n.get("delivery_count")) for n in rows))


def _read(rows: Rows) -> int:
    return int(sum(to_number(n.get("read_count")) for n in rows))


def build_notification_analytics(notifications: Rows, now: datetime) -> NotificationAnalytics:
    total = len(notifications)
    delivered = _delivered(notifications)
    read = _read(notifications)

    last_30 = rows_in_window(notifications, sub_months(now, 1), field_name="sent_at")
    last_7 = rows_in_window(notifications, sub_days(now, 7), field_name="sent_at")

    recipients = sum(len(n["recipient_uids"]) for n in notifications if isinstance(n.get("recipient_uids"), list))

    growth: list[NotificationMonth] = []
    months = ANALYTICS_SETTINGS["history_months"]
    for offset in range(months - 1, -1, -1):
        month_start = start_of_month(sub_months(now, offset))
        month_end = now if offset == 0 else start_of_month(sub_months(now, offset - 1))
        in_month = rows_in_window(notifications, month_start, month_end, field_name="sent_at")
        growth.append(
            NotificationMonth(
                month=month_start.strftime("%b %Y"),
                sent=len(in_month),
                delivered=_delivered(in_month),
                read=_read(in_month),
            )
        )

    senders: dict[str, SenderActivity] = {}
    for notif in notifications:
        name = notif.get("sent_by") or "System"
        entry = senders.setdefault(name, SenderActivity(sender=name))
        entry.count += 1
        entry.delivered += int(to_number(notif.get("delivery_count")))
        entry.read += int(to_number(notif.get("read_count")))
    top_senders = sorted(senders.values(), key=lambda s: s.count, reverse=True)[: ANALYTICS_SETTINGS["top_n"]]

    recipient_types = count_by(n.get("recipient_type") or "Unknown" for n in notifications)

    return NotificationAnalytics(
        overview=NotificationOverview(
            total_notifications=total,
            total_delivered=delivered,
            total_read=read,
            notifications_last_30_days=len(last_30),
            notifications_last_7_days=len(last_7),
            delivered_last_30_days=_delivered(last_30),
            avg_recipients_per_notification=round(safe_div(recipients, total), 1),
        ),
        engagement=NotificationEngagement(
            delivery_rate=round(safe_div(delivered, total) * 100, 1),
            read_rate=round(safe_div(read, delivered) * 100, 1),
            total_delivered=delivered,
            total_read=read,
        ),
        recipient_types=[
            NameValue(name=name, value=value)
            for name, value in sorted(recipient_types.items(), key=lambda kv: kv[1], reverse=True)
        ],
        growth=growth,
        top_senders=top_senders,
    )


async def get_notification_analytics(session_factory: SessionFactory, now: Optional[datetime] = None) -> NotificationAnalytics:
    now = now or utc_now()
    try:
        notifications = await fetch_all_async(
            session_factory,
            TableQuery(Table.NOTIFICATION_HISTORY).select(
                "id", "title", "message", "recipient_type", "recipient_uids",
                "sent_at", "sent_by", "delivery_count", "read_count",
            ),
        )
        return build_notification_analytics(notifications, now)
    except Exception as e:
        logger.error("Notification analytics failed", error=str(e), exc_info=True)
        return NotificationAnalytics()


__all__ = ["build_notification_analytics", "get_notification_analytics"]
