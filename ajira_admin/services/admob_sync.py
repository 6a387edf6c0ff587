"""AdMob -> ``earnings`` sync.

Pulls the daily report for the last ``days_to_sync`` days and upserts one
``admob`` earnings row per calendar day. A row is matched by its UTC day
range rather than an exact timestamp, so rows written by hand at other times
of day are updated in place instead of duplicated. New rows are stamped at
noon UTC.
"""
from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ajira_admin.config import ADMOB_SETTINGS
from ajira_admin.integrations.admob import AdMobReportRow
from ajira_admin.models.db import Earning
from ajira_admin.models.db.enums import RevenueSource
from ajira_admin.models.schemas import SyncResult
from ajira_admin.services.revenue_reconciliation import ReportSource, ctr, ecpm
from ajira_admin.utils import get_logger, log_business_event
from ajira_admin.utils.time import end_of_day, sub_days, utc_now

logger = get_logger(__name__)


def _row_metadata(row: AdMobReportRow, synced_at: datetime) -> dict:
    return {
        "impressions": row.impressions,
        "clicks": row.clicks,
        "ctr": ctr(row.clicks, row.impressions),
        "ecpm": ecpm(row.earnings, row.impressions),
        "last_synced": synced_at.isoformat(),
    }


def upsert_daily_earning(session: Session, row: AdMobReportRow, synced_at: datetime) -> bool:
    """Insert or update the day's AdMob row. Returns True when a new row was inserted."""
    day_start = datetime.combine(row.date, time.min, tzinfo=timezone.utc)
    day_end = end_of_day(day_start)

    existing = session.execute(
        select(Earning)
        .where(
            Earning.revenue_source == RevenueSource.ADMOB.value,
            Earning.earned_at >= day_start,
            Earning.earned_at <= day_end,
        )
        .order_by(Earning.id)
        .limit(1)
    ).scalars().first()

    if existing is not None:
        existing.amount = row.earnings
        existing.meta = _row_metadata(row, synced_at)
        return False

    session.add(
        Earning(
            revenue_source=RevenueSource.ADMOB.value,
            amount=row.earnings,
            currency=row.currency,
            description="AdMob Daily Earnings",
            earned_at=day_start.replace(hour=12),
            meta=_row_metadata(row, synced_at),
        )
    )
    return True


async def sync_admob_data(
    session: Session,
    days_to_sync: Optional[int] = None,
    client: Optional[ReportSource] = None,
    now: Optional[datetime] = None,
) -> SyncResult:
    if client is None:
        return SyncResult(success=False, error="AdMob credentials missing")

    days = int(days_to_sync or ADMOB_SETTINGS["default_sync_days"])
    now = now or utc_now()
    start = sub_days(now, days)

    try:
        report = await client.fetch_report(start.date(), now.date())
        inserted = 0
        for row in report:
            if upsert_daily_earning(session, row, now):
                inserted += 1
        session.commit()
    except Exception as e:  # AdMob and store failures both surface as a failed sync
        session.rollback()
        logger.error("AdMob sync failed", error=str(e), days=days, exc_info=True)
        return SyncResult(success=False, error=str(e) or "Failed to sync AdMob data")

    result = SyncResult(success=True, count=len(report), inserted=inserted, updated=len(report) - inserted)
    log_business_event(
        "admob_sync",
        {"days": days, "count": result.count, "inserted": result.inserted, "updated": result.updated},
    )
    return result


__all__ = ["upsert_daily_earning", "sync_admob_data"]
