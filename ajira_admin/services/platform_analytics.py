"""Platform-wide analytics across users, companies, jobs, engagement and revenue."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ajira_admin.config import ADMOB_SETTINGS, ANALYTICS_SETTINGS
from ajira_admin.models.db.enums import ApplicationStatus, InterviewStatus, ReferralStatus, SubscriptionStatus
from ajira_admin.models.schemas import NameValue, PlatformAnalytics
from ajira_admin.models.schemas.analytics import (
    PlatformApplications,
    PlatformEngagement,
    PlatformFinance,
    PlatformJobs,
    PlatformMonth,
    PlatformOverview,
    PlatformResumes,
    PlatformUsers,
)
from ajira_admin.services.bulk_fetcher import SessionFactory, Table, TableQuery, gather_queries
from ajira_admin.services.revenue_reconciliation import (
    ReportSource,
    ZeroBaseline,
    growth_rate,
    reconcile_revenue,
    resolve_admob_total,
    rows_in_window,
)
from ajira_admin.utils import get_logger
from ajira_admin.utils.metrics import as_pairs, count_by, safe_div, sum_field, title_case, to_number, top_n
from ajira_admin.utils.time import end_of_month, start_of_month, sub_days, sub_months, sub_years, utc_now

logger = get_logger(__name__)

Rows = list[Mapping[str, Any]]

PLATFORM_QUERIES = (
    TableQuery(Table.ALL_USERS).select("uid", "role", "registration_date", "is_blocked", "accounttype", "location", "skills"),
    TableQuery(Table.COMPANIES).select("uid", "created_at", "is_verified", "is_blocked", "subscription_plan", "jobs_posted", "industry", "location"),
    TableQuery(Table.LATEST_JOBS).select("id", "posted_at", "approved", "pending", "rejected", "is_featured", "category", "type", "location"),
    TableQuery(Table.JOB_APPLICATIONS).select("id", "applied_at", "status", "ai_rating"),
    TableQuery(Table.INTERVIEWS).select("id", "created_at", "status", "interview_type"),
    TableQuery(Table.CREDIT_TRANSACTIONS).select("id", "amount", "transaction_type", "created_at"),
    TableQuery(Table.REFERRALS).select("id", "created_at", "status", "referrer_credits_awarded", "referee_credits_awarded"),
    TableQuery(Table.SUBSCRIPTION_HISTORY).select("id", "created_at", "amount", "status", "plan"),
    TableQuery(Table.GENERATED_RESUMES).select("id", "user_uid", "resume_type", "template", "created_at"),
    TableQuery(Table.EARNINGS).select("id", "amount", "currency", "revenue_source", "earned_at", "created_at"),
)


def _count_in(rows: Rows, field: str, start: Optional[datetime], end: Optional[datetime] = None, *, inclusive_end: bool = False) -> int:
    return len(rows_in_window(rows, start, end, field_name=field, inclusive_end=inclusive_end))


def _labelled_counts(rows: Rows, field: str, fallback: str) -> dict[str, int]:
    return count_by(title_case(row[field]) if row.get(field) else fallback for row in rows)


def top_locations(users: Rows, n: int) -> list[NameValue]:
    labels = [title_case(str(u["location"]).strip()) for u in users if u.get("location")]
    return [NameValue(**item) for item in top_n(count_by(labels), n)]


def top_skills(users: Rows, n: int) -> list[NameValue]:
    """Skills are stored per user as an index -> name mapping."""
    labels: list[str] = []
    for user in users:
        skills = user.get("skills")
        if isinstance(skills, dict):
            values = skills.values()
        elif isinstance(skills, list):
            values = skills
        else:
            continue
        labels.extend(title_case(skill.strip()) for skill in values if isinstance(skill, str))
    return [NameValue(**item) for item in top_n(count_by(labels), n)]


def monthly_growth(users: Rows, jobs: Rows, applications: Rows, earnings: Rows, now: datetime, months: int) -> tuple[list[PlatformMonth], list[float]]:
    """Month rows (``"%b %y"`` labels, oldest first) and each month's stored revenue."""
    series: list[PlatformMonth] = []
    revenue: list[float] = []
    for offset in range(months - 1, -1, -1):
        anchor = sub_months(now, offset)
        month_start, month_end = start_of_month(anchor), end_of_month(anchor)
        series.append(
            PlatformMonth(
                month=month_start.strftime("%b %y"),
                users=_count_in(users, "registration_date", month_start, month_end, inclusive_end=True),
                jobs=_count_in(jobs, "posted_at", month_start, month_end, inclusive_end=True),
                applications=_count_in(applications, "applied_at", month_start, month_end, inclusive_end=True),
            )
        )
        revenue.append(sum_field(rows_in_window(earnings, month_start, month_end, inclusive_end=True), "amount"))
    return series, revenue


def build_platform_analytics(
    users: Rows,
    companies: Rows,
    jobs: Rows,
    applications: Rows,
    interviews: Rows,
    credits: Rows,
    referrals: Rows,
    subscriptions: Rows,
    resumes: Rows,
    earnings: Rows,
    admob_all_time: float,
    admob_this_month: float,
    now: datetime,
) -> PlatformAnalytics:
    window = ANALYTICS_SETTINGS["growth_window_days"]
    top = ANALYTICS_SETTINGS["top_n"]
    last_30 = sub_days(now, window)
    previous_30 = sub_days(now, window * 2)

    new_users = _count_in(users, "registration_date", last_30)
    prev_users = _count_in(users, "registration_date", previous_30, last_30)
    new_jobs = _count_in(jobs, "posted_at", last_30)
    prev_jobs = _count_in(jobs, "posted_at", previous_30, last_30)

    # Revenue: live AdMob wins for all-time and this-month totals
    totals = reconcile_revenue(earnings, admob_all_time)
    month_start = start_of_month(now)
    this_month = reconcile_revenue(rows_in_window(earnings, month_start), admob_this_month)

    active_users = sum(1 for u in users if not u.get("is_blocked"))
    verified_users = sum(1 for u in users if u.get("accounttype") == "verified")
    active_jobs = sum(1 for j in jobs if j.get("approved") == "yes")
    pending_jobs = sum(1 for j in jobs if j.get("pending") == "yes")
    featured_jobs = sum(1 for j in jobs if j.get("is_featured"))

    total_applications = len(applications)
    shortlisted = sum(1 for a in applications if a.get("status") == ApplicationStatus.SHORTLISTED.value)
    ratings = [to_number(a.get("ai_rating")) for a in applications if to_number(a.get("ai_rating"))]
    avg_rating = safe_div(sum(ratings), len(ratings))

    total_interviews = len(interviews)
    scheduled = sum(1 for i in interviews if i.get("status") == InterviewStatus.SCHEDULED.value)

    issued = int(sum(to_number(c.get("amount")) for c in credits if to_number(c.get("amount")) > 0))
    used = int(abs(sum(to_number(c.get("amount")) for c in credits if to_number(c.get("amount")) < 0)))

    successful_referrals = sum(1 for r in referrals if r.get("status") == ReferralStatus.REWARDED.value)
    referral_credits = int(
        sum(to_number(r.get("referrer_credits_awarded")) + to_number(r.get("referee_credits_awarded")) for r in referrals)
    )

    verified_companies = sum(1 for c in companies if c.get("is_verified"))
    active_recruiters = sum(1 for c in companies if to_number(c.get("jobs_posted")) > 0)
    active_subscriptions = sum(1 for s in subscriptions if s.get("status") == SubscriptionStatus.ACTIVE.value)
    paid_subscriptions = sum(1 for s in subscriptions if s.get("plan") and str(s["plan"]).lower() != "free")

    resumes_last_30 = _count_in(resumes, "created_at", last_30)

    months, monthly_revenue = monthly_growth(users, jobs, applications, earnings, now, ANALYTICS_SETTINGS["history_months"])
    avg_monthly_revenue = safe_div(sum(monthly_revenue), len(monthly_revenue))

    user_growth = growth_rate(new_users, prev_users, ZeroBaseline.NO_GROWTH)
    job_growth = growth_rate(new_jobs, prev_jobs, ZeroBaseline.NO_GROWTH)

    jobs_by_category = _labelled_counts(jobs, "category", "Uncategorized")
    resumes_by_template = _labelled_counts(resumes, "template", "Default")

    return PlatformAnalytics(
        overview=PlatformOverview(
            total_users=len(users),
            active_users=active_users,
            verified_users=verified_users,
            total_companies=len(companies),
            verified_companies=verified_companies,
            active_recruiters=active_recruiters,
            total_jobs=len(jobs),
            active_jobs=active_jobs,
            pending_jobs=pending_jobs,
            featured_jobs=featured_jobs,
            total_applications=total_applications,
            shortlisted_applications=shortlisted,
            total_interviews=total_interviews,
            scheduled_interviews=scheduled,
            total_revenue=totals.total_revenue,
            revenue_last_month=this_month.total_revenue,
            active_subscriptions=active_subscriptions,
            paid_subscriptions=paid_subscriptions,
            user_growth_rate=user_growth,
            job_growth_rate=job_growth,
            total_resumes_generated=len(resumes),
            resumes_last_30_days=resumes_last_30,
        ),
        users=PlatformUsers(
            total=len(users),
            active=active_users,
            blocked=sum(1 for u in users if u.get("is_blocked")),
            verified=verified_users,
            by_role=[NameValue(**item) for item in as_pairs(_labelled_counts(users, "role", "Unknown"))],
            new_last_30_days=new_users,
            top_locations=top_locations(users, top),
            top_skills=top_skills(users, top),
        ),
        jobs=PlatformJobs(
            total=len(jobs),
            active=active_jobs,
            pending=pending_jobs,
            rejected=sum(1 for j in jobs if j.get("rejected") == "yes"),
            featured=featured_jobs,
            by_category=[NameValue(**item) for item in top_n(jobs_by_category, top)],
            new_last_30_days=new_jobs,
        ),
        applications=PlatformApplications(
            total=total_applications,
            shortlisted=shortlisted,
            rejected=sum(1 for a in applications if a.get("status") == ApplicationStatus.REJECTED.value),
            pending=sum(1 for a in applications if a.get("status") in (ApplicationStatus.PENDING.value, None, "")),
            avg_ai_rating=round(avg_rating, 1),
        ),
        finance=PlatformFinance(
            total_revenue=totals.total_revenue,
            revenue_last_month=this_month.total_revenue,
            avg_monthly_revenue=avg_monthly_revenue,
            total_credits_issued=issued,
            total_credits_used=used,
            net_credits=issued - used,
            total_referrals=len(referrals),
            successful_referrals=successful_referrals,
            referral_credits_awarded=referral_credits,
            admob_live=totals.admob_from_api,
        ),
        engagement=PlatformEngagement(
            total_interviews=total_interviews,
            scheduled_interviews=scheduled,
            completed_interviews=sum(1 for i in interviews if i.get("status") == InterviewStatus.COMPLETED.value),
            application_rate=round(safe_div(total_applications, len(jobs)), 2),
            interview_rate=round(safe_div(total_interviews, total_applications) * 100, 1),
            total_resumes_generated=len(resumes),
            resumes_last_30_days=resumes_last_30,
        ),
        resumes=PlatformResumes(
            total=len(resumes),
            last_30_days=resumes_last_30,
            by_type=[NameValue(**item) for item in as_pairs(_labelled_counts(resumes, "resume_type", "Standard"))],
            by_template=[NameValue(**item) for item in top_n(resumes_by_template, top)],
        ),
        monthly_growth=months,
    )


async def get_platform_analytics(
    session_factory: SessionFactory,
    admob_client: Optional[ReportSource] = None,
    now: Optional[datetime] = None,
) -> PlatformAnalytics:
    now = now or utc_now()
    try:
        results = await gather_queries(session_factory, *PLATFORM_QUERIES)
        (users, companies, jobs, applications, interviews,
         credits, referrals, subscriptions, resumes, earnings) = results

        lookback = int(ADMOB_SETTINGS["all_time_lookback_years"])
        all_time = await resolve_admob_total(admob_client, sub_years(now, lookback).date(), now.date())
        this_month = await resolve_admob_total(admob_client, start_of_month(now).date(), now.date())

        return build_platform_analytics(
            users, companies, jobs, applications, interviews,
            credits, referrals, subscriptions, resumes, earnings,
            admob_all_time=all_time.live_total,
            admob_this_month=this_month.live_total,
            now=now,
        )
    except Exception as e:
        logger.error("Platform analytics failed", error=str(e), exc_info=True)
        return PlatformAnalytics()


__all__ = [
    "PLATFORM_QUERIES",
    "top_locations",
    "top_skills",
    "monthly_growth",
    "build_platform_analytics",
    "get_platform_analytics",
]
