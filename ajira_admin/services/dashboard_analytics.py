"""Landing-dashboard analytics.

Mostly exact counts (head queries) plus stored earnings for the 30-day, 7-day
and today windows. Only ``earnings.all_time_admob`` consults the live AdMob
report; when it is unavailable the stored 30-day AdMob sum is shown instead.
Growth rates here report 100% when the previous window was empty.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ajira_admin.config import ADMOB_SETTINGS, ANALYTICS_SETTINGS
from ajira_admin.models.schemas import DashboardAnalytics
from ajira_admin.models.schemas.analytics import (
    ActivityGrowth,
    DailyRevenue,
    DashboardEarnings,
    DashboardOverview,
    DashboardPending,
    DashboardRecent,
    DashboardRevenue,
    DashboardToday,
    DashboardTop,
)
from ajira_admin.services.bulk_fetcher import SessionFactory, Table, TableQuery, gather_queries
from ajira_admin.services.revenue_reconciliation import (
    ReportSource,
    ZeroBaseline,
    growth_rate,
    resolve_admob_total,
    split_by_source,
)
from ajira_admin.services.earnings_analytics import revenue_by_source
from ajira_admin.utils import get_logger
from ajira_admin.utils.metrics import sum_field, to_number
from ajira_admin.utils.time import end_of_day, start_of_day, sub_days, sub_years, to_utc, utc_now

logger = get_logger(__name__)


def dashboard_queries(now: datetime) -> dict[str, TableQuery]:
    """Named descriptors for the dashboard fan-out (order is the gather order)."""
    window = ANALYTICS_SETTINGS["growth_window_days"]
    today_start, today_end = start_of_day(now), end_of_day(now)
    active_since = sub_days(now, ANALYTICS_SETTINGS["active_user_window_days"])
    last_30 = sub_days(now, window)
    last_60 = sub_days(now, window * 2)
    last_7 = sub_days(now, ANALYTICS_SETTINGS["earnings_recent_days"])
    recent = ANALYTICS_SETTINGS["recent_items"]

    users = TableQuery(Table.ALL_USERS)
    companies = TableQuery(Table.COMPANIES)
    jobs = TableQuery(Table.LATEST_JOBS)
    applications = TableQuery(Table.JOB_APPLICATIONS)
    earnings = TableQuery(Table.EARNINGS).select("amount", "revenue_source", "earned_at")

    return {
        "total_users": users.head(),
        "total_companies": companies.head(),
        "total_jobs": jobs.head(),
        "total_applications": applications.head(),
        "today_users": users.gte("created_at", today_start).lte("created_at", today_end).head(),
        "today_jobs": jobs.gte("posted_at", today_start).lte("posted_at", today_end).head(),
        "today_applications": applications.gte("applied_at", today_start).lte("applied_at", today_end).head(),
        "active_users": users.gte("last_3_reward_date", active_since).head(),
        "prev_active_users": users.between("last_3_reward_date", last_30, active_since).head(),
        "jobs_30d": jobs.gte("posted_at", last_30).head(),
        "applications_30d": applications.gte("applied_at", last_30).head(),
        "prev_jobs": jobs.between("posted_at", last_60, last_30).head(),
        "prev_applications": applications.between("applied_at", last_60, last_30).head(),
        "pending_jobs": jobs.eq("approval_status", "pending").head(),
        "blocked_users": users.eq("is_blocked", True).head(),
        "unverified_companies": companies.eq("is_verified", False).head(),
        "earnings_30d": earnings.gte("earned_at", last_30).order("earned_at", desc=True),
        "earnings_prev_30d": earnings.between("earned_at", last_60, last_30),
        "earnings_7d": earnings.gte("earned_at", last_7).order("earned_at", desc=True),
        "earnings_today": earnings.gte("earned_at", today_start).lte("earned_at", today_end),
        "recent_users": users.select("id", "email", "full_name", "created_at", "account_type")
            .order("created_at", desc=True).take(recent),
        "recent_jobs": jobs.select("id", "title", "company_name", "posted_at", "approval_status")
            .order("posted_at", desc=True).take(recent),
        "recent_applications": applications.select("id", "job_id", "user_id", "applied_at", "status")
            .order("applied_at", desc=True).take(recent),
        "top_companies": companies.select("id", "company_name", "industry", "created_at")
            .eq("is_verified", True).order("created_at", desc=True).take(recent),
        "top_skills": TableQuery(Table.SKILLS).select("id", "skill_name", "category")
            .order("created_at", desc=True).take(ANALYTICS_SETTINGS["top_n"]),
    }


def daily_revenue_chart(rows: list[Mapping[str, Any]], now: datetime, days: int) -> list[DailyRevenue]:
    """One point per UTC day for the last ``days`` days (today included), oldest first."""
    buckets = {sub_days(now, offset).strftime("%Y-%m-%d"): 0.0 for offset in range(days)}
    for row in rows:
        earned_at = to_utc(row.get("earned_at"))
        if earned_at is None:
            continue
        day = earned_at.strftime("%Y-%m-%d")
        if day in buckets:
            buckets[day] += to_number(row.get("amount"))
    return [DailyRevenue(date=day, revenue=value) for day, value in sorted(buckets.items())]


def build_dashboard_analytics(results: Mapping[str, Any], admob_all_time: float, now: datetime) -> DashboardAnalytics:
    earnings_30d = results["earnings_30d"]
    admob_30d, other_30d = split_by_source(earnings_30d)
    current_revenue = admob_30d + other_30d
    previous_revenue = sum_field(results["earnings_prev_30d"], "amount")
    total_7d = sum_field(results["earnings_7d"], "amount")
    today_earnings = sum_field(results["earnings_today"], "amount")

    full = ZeroBaseline.FULL_GROWTH
    return DashboardAnalytics(
        overview=DashboardOverview(
            total_users=results["total_users"],
            total_companies=results["total_companies"],
            total_jobs=results["total_jobs"],
            total_applications=results["total_applications"],
        ),
        today=DashboardToday(
            new_users=results["today_users"],
            new_jobs=results["today_jobs"],
            new_applications=results["today_applications"],
            earnings=today_earnings,
        ),
        revenue=DashboardRevenue(
            total=current_revenue,
            growth=growth_rate(current_revenue, previous_revenue, full),
            chart_data=daily_revenue_chart(earnings_30d, now, ANALYTICS_SETTINGS["growth_window_days"]),
        ),
        users=ActivityGrowth(
            count=results["active_users"],
            growth=growth_rate(results["active_users"], results["prev_active_users"], full),
        ),
        jobs=ActivityGrowth(
            count=results["jobs_30d"],
            growth=growth_rate(results["jobs_30d"], results["prev_jobs"], full),
        ),
        applications=ActivityGrowth(
            count=results["applications_30d"],
            growth=growth_rate(results["applications_30d"], results["prev_applications"], full),
        ),
        earnings=DashboardEarnings(
            total_7d=total_7d,
            by_source=revenue_by_source(results["earnings_7d"]),
            today=today_earnings,
            all_time_admob=admob_all_time if admob_all_time > 0 else admob_30d,
        ),
        pending=DashboardPending(
            jobs=results["pending_jobs"],
            blocked_users=results["blocked_users"],
            unverified_companies=results["unverified_companies"],
        ),
        recent=DashboardRecent(
            users=results["recent_users"],
            jobs=results["recent_jobs"],
            applications=results["recent_applications"],
        ),
        top=DashboardTop(
            companies=results["top_companies"],
            skills=results["top_skills"],
        ),
    )


async def get_dashboard_analytics(
    session_factory: SessionFactory,
    admob_client: Optional[ReportSource] = None,
    now: Optional[datetime] = None,
) -> DashboardAnalytics:
    now = now or utc_now()
    try:
        queries = dashboard_queries(now)
        values = await gather_queries(session_factory, *queries.values())
        results = dict(zip(queries.keys(), values))

        lookback = int(ADMOB_SETTINGS["all_time_lookback_years"])
        outcome = await resolve_admob_total(admob_client, sub_years(now, lookback).date(), now.date())
        return build_dashboard_analytics(results, outcome.live_total, now)
    except Exception as e:
        logger.error("Dashboard analytics failed", error=str(e), exc_info=True)
        return DashboardAnalytics()


__all__ = [
    "dashboard_queries",
    "daily_revenue_chart",
    "build_dashboard_analytics",
    "get_dashboard_analytics",
]
