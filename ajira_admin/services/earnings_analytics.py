"""Earnings analytics (revenue totals, AdMob performance, six-month series).

All-time AdMob revenue is reconciled against the live report (five years back)
when a client is configured; every windowed figure uses stored rows only.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ajira_admin.config import ADMOB_SETTINGS, ANALYTICS_SETTINGS
from ajira_admin.models.db.enums import RevenueSource
from ajira_admin.models.schemas import (
    AllTimeAdMobEarnings,
    EarningsAnalytics,
    EarningsMonth,
    NameValue,
    RevenueSourceShare,
)
from ajira_admin.services.bulk_fetcher import SessionFactory, Table, TableQuery, fetch_all_async
from ajira_admin.services.revenue_reconciliation import (
    ReportSource,
    ZeroBaseline,
    ad_performance,
    growth_rate,
    reconcile_revenue,
    resolve_admob_total,
    rows_in_window,
    window_revenue,
)
from ajira_admin.utils import get_logger
from ajira_admin.utils.metrics import safe_div, source_label, sum_field, to_number
from ajira_admin.utils.time import start_of_month, sub_months, sub_years, to_utc, utc_now

logger = get_logger(__name__)


def revenue_by_source(rows: list[Mapping[str, Any]]) -> dict[str, float]:
    totals: dict[str, float] = {}
    for row in rows:
        source = row.get("revenue_source") or RevenueSource.OTHER.value
        totals[source] = totals.get(source, 0.0) + to_number(row.get("amount"))
    return totals


def monthly_earnings(rows: list[Mapping[str, Any]], now: datetime, months: int) -> list[EarningsMonth]:
    """Per-month totals for the last ``months`` calendar months, oldest first."""
    buckets: dict[str, EarningsMonth] = {}
    for offset in range(months - 1, -1, -1):
        label = start_of_month(sub_months(now, offset)).strftime("%b %Y")
        buckets[label] = EarningsMonth(date=label)

    for row in rows:
        earned_at = to_utc(row.get("earned_at"))
        if earned_at is None:
            continue
        entry = buckets.get(earned_at.strftime("%b %Y"))
        if entry is None:
            continue
        amount = to_number(row.get("amount"))
        entry.earnings += amount
        source = row.get("revenue_source")
        if source == RevenueSource.ADMOB.value:
            entry.admob += amount
        elif source == RevenueSource.SUBSCRIPTION.value:
            entry.subscriptions += amount
        else:
            entry.other += amount
    return list(buckets.values())


def build_earnings_analytics(rows: list[Mapping[str, Any]], api_total: float, now: datetime) -> EarningsAnalytics:
    totals = reconcile_revenue(rows, api_total)
    thirty_days_ago = sub_months(now, 1)
    last_30 = window_revenue(rows, thirty_days_ago)

    by_source = revenue_by_source(rows)
    if totals.admob_from_api:
        by_source[RevenueSource.ADMOB.value] = totals.total_admob

    total_earnings = totals.total_revenue
    distribution = [NameValue(name=source_label(name), value=value) for name, value in by_source.items()]
    top_sources = sorted(by_source.items(), key=lambda kv: kv[1], reverse=True)[: ANALYTICS_SETTINGS["top_sources"]]

    performance = ad_performance(rows)

    months = ANALYTICS_SETTINGS["history_months"]
    six_months_ago = sub_months(now, months)
    recent = sum_field(rows_in_window(rows, six_months_ago), "amount")
    previous = sum_field(rows_in_window(rows, sub_months(six_months_ago, months), six_months_ago), "amount")

    return EarningsAnalytics(
        total_earnings=total_earnings,
        earnings_last_30_days=last_30.total_revenue,
        growth_rate=growth_rate(recent, previous, ZeroBaseline.NO_GROWTH),
        revenue_source_distribution=distribution,
        total_admob_revenue=totals.total_admob,
        admob_last_30_days=last_30.total_admob,
        total_ad_impressions=performance.impressions,
        total_ad_clicks=performance.clicks,
        avg_ctr=performance.ctr,
        avg_ecpm=performance.ecpm,
        subscription_earnings=by_source.get(RevenueSource.SUBSCRIPTION.value, 0.0),
        featured_job_earnings=by_source.get(RevenueSource.FEATURED_JOB.value, 0.0),
        credits_purchase_earnings=by_source.get(RevenueSource.CREDITS_PURCHASE.value, 0.0),
        earnings_growth=monthly_earnings(rows, now, months),
        top_revenue_sources=[
            RevenueSourceShare(
                name=source_label(name),
                amount=amount,
                percentage=safe_div(amount, total_earnings) * 100,
            )
            for name, amount in top_sources
        ],
        admob_live=totals.admob_from_api,
    )


async def get_earnings_analytics(
    session_factory: SessionFactory,
    admob_client: Optional[ReportSource] = None,
    now: Optional[datetime] = None,
) -> EarningsAnalytics:
    """Earnings dashboard payload; any store failure yields the empty model."""
    now = now or utc_now()
    try:
        rows = await fetch_all_async(session_factory, TableQuery(Table.EARNINGS))
        api_total = 0.0
        if admob_client is not None:
            lookback = int(ADMOB_SETTINGS["all_time_lookback_years"])
            outcome = await resolve_admob_total(admob_client, sub_years(now, lookback).date(), now.date())
            api_total = outcome.live_total
        if not rows and api_total <= 0:
            return EarningsAnalytics()
        return build_earnings_analytics(rows, api_total, now)
    except Exception as e:
        logger.error("Earnings analytics failed", error=str(e), exc_info=True)
        return EarningsAnalytics()


async def get_all_time_admob_earnings(
    admob_client: Optional[ReportSource],
    now: Optional[datetime] = None,
) -> AllTimeAdMobEarnings:
    """Live AdMob total over the all-time lookback window, 0 when unavailable."""
    now = now or utc_now()
    lookback = int(ADMOB_SETTINGS["all_time_lookback_years"])
    outcome = await resolve_admob_total(admob_client, sub_years(now, lookback).date(), now.date())
    return AllTimeAdMobEarnings(total=outcome.live_total, live=outcome.success, lookback_years=lookback)


__all__ = [
    "revenue_by_source",
    "monthly_earnings",
    "build_earnings_analytics",
    "get_earnings_analytics",
    "get_all_time_admob_earnings",
]
