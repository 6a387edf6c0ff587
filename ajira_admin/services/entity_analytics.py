"""Per-entity analytics pages: users, jobs, companies, applications, interviews.

Each page reads one table through the bulk fetcher and reuses the monthly
history and ranking helpers of the finance and platform aggregators.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ajira_admin.config import ANALYTICS_SETTINGS
from ajira_admin.models.db.enums import ApplicationStatus
from ajira_admin.models.schemas import (
    ApplicationAnalytics,
    CompanyAnalytics,
    InterviewAnalytics,
    JobAnalytics,
    NameValue,
    UserAnalytics,
)
from ajira_admin.services.bulk_fetcher import SessionFactory, Table, TableQuery, gather_queries
from ajira_admin.services.finance_analytics import monthly_totals
from ajira_admin.services.platform_analytics import top_locations, top_skills
from ajira_admin.utils import get_logger
from ajira_admin.utils.metrics import as_pairs, count_by, safe_div, title_case, to_number, top_n
from ajira_admin.utils.time import start_of_day, to_utc, utc_now

logger = get_logger(__name__)

Rows = list[Mapping[str, Any]]

AGE_BRACKETS = ("Under 18", "18-24", "25-34", "35-44", "45-54", "55+")
UNKNOWN_AGE = "Unknown"
JOB_STATUSES = (("Approved", "approved"), ("Pending", "pending"), ("Rejected", "rejected"))
UNRATED = "Unrated"

USER_QUERY = TableQuery(Table.ALL_USERS).select(
    "uid", "role", "gender", "accounttype", "is_blocked", "location", "skills", "birth_date", "registration_date",
)
JOB_QUERY = TableQuery(Table.LATEST_JOBS).select(
    "id", "posted_at", "deadline", "approved", "pending", "rejected", "is_featured", "category", "type", "location",
)
COMPANY_QUERY = TableQuery(Table.COMPANIES).select(
    "uid", "industry", "company_size", "location", "subscription_plan", "jobs_posted", "is_verified", "is_blocked", "created_at",
)
APPLICATION_QUERY = TableQuery(Table.JOB_APPLICATIONS).select("id", "status", "ai_rating", "applied_at")
INTERVIEW_QUERY = TableQuery(Table.INTERVIEWS).select("id", "status", "interview_type", "interview_date", "created_at")


def _pairs(rows: Rows, field: str, fallback: str, *, titled: bool = True) -> list[NameValue]:
    counts = count_by((title_case(str(row[field])) if titled else str(row[field])) if row.get(field) else fallback for row in rows)
    return [NameValue(**item) for item in as_pairs(counts)]


def _top(rows: Rows, field: str, fallback: str, n: int) -> list[NameValue]:
    counts = count_by(title_case(str(row[field])) if row.get(field) else fallback for row in rows)
    return [NameValue(**item) for item in top_n(counts, n)]

# --------------------------------------------------------------------------- #
# Users
# --------------------------------------------------------------------------- #

def age_on(birth: date, today: date) -> int:
    """Whole years completed by ``today``."""
    return today.year - birth.year - ((today.month, today.day) < (birth.month, birth.day))


def age_bracket(age: Optional[int]) -> str:
    if age is None or age < 0:
        return UNKNOWN_AGE
    if age < 18:
        return "Under 18"
    if age <= 24:
        return "18-24"
    if age <= 34:
        return "25-34"
    if age <= 44:
        return "35-44"
    if age <= 54:
        return "45-54"
    return "55+"


def age_distribution(users: Rows, now: datetime) -> list[NameValue]:
    """Bracket counts in fixed order; empty brackets are left out."""
    labels = []
    for user in users:
        born = to_utc(user.get("birth_date"))
        labels.append(age_bracket(age_on(born.date(), now.date())) if born else UNKNOWN_AGE)
    counts = count_by(labels)
    return [NameValue(name=label, value=counts[label]) for label in (*AGE_BRACKETS, UNKNOWN_AGE) if counts[label]]


def build_user_analytics(users: Rows, now: datetime) -> UserAnalytics:
    top = ANALYTICS_SETTINGS["top_n"]
    return UserAnalytics(
        total_users=len(users),
        active_users=sum(1 for u in users if not u.get("is_blocked")),
        blocked_users=sum(1 for u in users if u.get("is_blocked")),
        verified_users=sum(1 for u in users if u.get("accounttype") == "verified"),
        role_distribution=_pairs(users, "role", "Unknown"),
        gender_distribution=_pairs(users, "gender", "Not Specified"),
        account_type_distribution=_pairs(users, "accounttype", "Regular"),
        growth_history=monthly_totals(users, "registration_date"),
        top_skills=top_skills(users, top),
        location_distribution=top_locations(users, top),
        age_distribution=age_distribution(users, now),
    )


async def get_user_analytics(session_factory: SessionFactory, now: Optional[datetime] = None) -> UserAnalytics:
    now = now or utc_now()
    try:
        (users,) = await gather_queries(session_factory, USER_QUERY)
        return build_user_analytics(users, now)
    except Exception as e:
        logger.error("User analytics failed", error=str(e), exc_info=True)
        return UserAnalytics()

# --------------------------------------------------------------------------- #
# Jobs
# --------------------------------------------------------------------------- #

def is_open(job: Mapping[str, Any], now: datetime) -> bool:
    deadline = to_utc(job.get("deadline"))
    return deadline is None or deadline > now


def build_job_analytics(jobs: Rows, now: datetime) -> JobAnalytics:
    top = ANALYTICS_SETTINGS["top_n"]
    statuses = [
        NameValue(name=label, value=sum(1 for j in jobs if j.get(field) == "yes"))
        for label, field in JOB_STATUSES
    ]
    return JobAnalytics(
        total_jobs=len(jobs),
        active_jobs=sum(1 for j in jobs if is_open(j, now)),
        featured_jobs=sum(1 for j in jobs if j.get("is_featured")),
        pending_jobs=sum(1 for j in jobs if j.get("pending") == "yes"),
        status_distribution=statuses,
        category_distribution=_top(jobs, "category", "Uncategorized", top),
        type_distribution=_pairs(jobs, "type", "Not Specified"),
        location_distribution=top_locations(jobs, top),
        growth_history=monthly_totals(jobs, "posted_at"),
    )


async def get_job_analytics(session_factory: SessionFactory, now: Optional[datetime] = None) -> JobAnalytics:
    now = now or utc_now()
    try:
        (jobs,) = await gather_queries(session_factory, JOB_QUERY)
        return build_job_analytics(jobs, now)
    except Exception as e:
        logger.error("Job analytics failed", error=str(e), exc_info=True)
        return JobAnalytics()

# --------------------------------------------------------------------------- #
# Companies
# --------------------------------------------------------------------------- #

def build_company_analytics(companies: Rows) -> CompanyAnalytics:
    top = ANALYTICS_SETTINGS["top_n"]
    return CompanyAnalytics(
        total_companies=len(companies),
        verified_companies=sum(1 for c in companies if c.get("is_verified")),
        blocked_companies=sum(1 for c in companies if c.get("is_blocked")),
        active_job_posters=sum(1 for c in companies if to_number(c.get("jobs_posted")) > 0),
        industry_distribution=_top(companies, "industry", "Unspecified", top),
        # Sizes are ranges like "11-50"; kept as stored
        size_distribution=_pairs(companies, "company_size", "Unknown", titled=False),
        location_distribution=top_locations(companies, top),
        subscription_distribution=_pairs(companies, "subscription_plan", "Free"),
        growth_history=monthly_totals(companies, "created_at"),
    )


async def get_company_analytics(session_factory: SessionFactory) -> CompanyAnalytics:
    try:
        (companies,) = await gather_queries(session_factory, COMPANY_QUERY)
        return build_company_analytics(companies)
    except Exception as e:
        logger.error("Company analytics failed", error=str(e), exc_info=True)
        return CompanyAnalytics()

# --------------------------------------------------------------------------- #
# Applications
# --------------------------------------------------------------------------- #

def rating_distribution(applications: Rows) -> list[NameValue]:
    """One bucket per whole star, lowest first, unrated last."""
    stars: dict[int, int] = {}
    unrated = 0
    for app in applications:
        rating = to_number(app.get("ai_rating"))
        if not rating:
            unrated += 1
            continue
        low = math.floor(rating)
        stars[low] = stars.get(low, 0) + 1
    buckets = [NameValue(name=f"{low}-{low + 1} Stars", value=stars[low]) for low in sorted(stars)]
    if unrated:
        buckets.append(NameValue(name=UNRATED, value=unrated))
    return buckets


def build_application_analytics(applications: Rows) -> ApplicationAnalytics:
    ratings = [to_number(a.get("ai_rating")) for a in applications]
    rated = sum(1 for r in ratings if r)
    return ApplicationAnalytics(
        total_applications=len(applications),
        shortlisted=sum(1 for a in applications if a.get("status") == ApplicationStatus.SHORTLISTED.value),
        rejected=sum(1 for a in applications if a.get("status") == ApplicationStatus.REJECTED.value),
        pending=sum(1 for a in applications if a.get("status") in (ApplicationStatus.PENDING.value, None, "")),
        avg_rating=round(safe_div(sum(ratings), rated), 1),
        status_distribution=_pairs(applications, "status", "Pending"),
        rating_distribution=rating_distribution(applications),
        growth_history=monthly_totals(applications, "applied_at"),
    )


async def get_application_analytics(session_factory: SessionFactory) -> ApplicationAnalytics:
    try:
        (applications,) = await gather_queries(session_factory, APPLICATION_QUERY)
        return build_application_analytics(applications)
    except Exception as e:
        logger.error("Application analytics failed", error=str(e), exc_info=True)
        return ApplicationAnalytics()

# --------------------------------------------------------------------------- #
# Interviews
# --------------------------------------------------------------------------- #

def build_interview_analytics(interviews: Rows, now: datetime) -> InterviewAnalytics:
    today = start_of_day(now)
    dates = [to_utc(i.get("interview_date")) for i in interviews]
    return InterviewAnalytics(
        total_interviews=len(interviews),
        upcoming_interviews=sum(1 for d in dates if d is not None and d >= today),
        past_interviews=sum(1 for d in dates if d is not None and d < today),
        scheduled_today=sum(1 for d in dates if d is not None and d.date() == now.date()),
        status_distribution=_pairs(interviews, "status", "Scheduled"),
        type_distribution=_pairs(interviews, "interview_type", "Other"),
        growth_history=monthly_totals(interviews, "created_at"),
    )


async def get_interview_analytics(session_factory: SessionFactory, now: Optional[datetime] = None) -> InterviewAnalytics:
    now = now or utc_now()
    try:
        (interviews,) = await gather_queries(session_factory, INTERVIEW_QUERY)
        return build_interview_analytics(interviews, now)
    except Exception as e:
        logger.error("Interview analytics failed", error=str(e), exc_info=True)
        return InterviewAnalytics()


__all__ = [
    "AGE_BRACKETS",
    "age_on",
    "age_bracket",
    "age_distribution",
    "build_user_analytics",
    "get_user_analytics",
    "is_open",
    "build_job_analytics",
    "get_job_analytics",
    "build_company_analytics",
    "get_company_analytics",
    "rating_distribution",
    "build_application_analytics",
    "get_application_analytics",
    "build_interview_analytics",
    "get_interview_analytics",
]
