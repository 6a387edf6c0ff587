"""Credits, referral and subscription analytics.

Month histories are labelled ``"%b %y"`` and returned oldest first; only
months that have at least one record appear.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from ajira_admin.config import ANALYTICS_SETTINGS
from ajira_admin.models.db.enums import ReferralStatus, SubscriptionStatus
from ajira_admin.models.schemas import CreditAnalytics, MonthlyValue, NameValue, ReferralAnalytics, SubscriptionAnalytics
from ajira_admin.models.schemas.analytics import CreditFlowMonth, TopReferrer, TopSubscriber
from ajira_admin.services.bulk_fetcher import SessionFactory, Table, TableQuery, fetch_all_async
from ajira_admin.utils import get_logger
from ajira_admin.utils.metrics import as_pairs, count_by, title_case, to_number
from ajira_admin.utils.time import start_of_month, to_utc, utc_now

logger = get_logger(__name__)

Rows = list[Mapping[str, Any]]


def monthly_totals(rows: Iterable[Mapping[str, Any]], field: str, value=None) -> list[MonthlyValue]:
    """Sum ``value(row)`` (default: 1 per row) per month of ``row[field]``."""
    buckets: dict[datetime, float] = {}
    for row in rows:
        stamp = to_utc(row.get(field))
        if stamp is None:
            continue
        key = start_of_month(stamp)
        buckets[key] = buckets.get(key, 0.0) + (value(row) if value else 1)
    return [MonthlyValue(date=key.strftime("%b %y"), value=total) for key, total in sorted(buckets.items())]


def _distribution(rows: Rows, field: str, fallback: str) -> list[NameValue]:
    counts = count_by(title_case(row[field]) if row.get(field) else fallback for row in rows)
    return [NameValue(**item) for item in as_pairs(counts)]

# --------------------------------------------------------------------------- #
# Credits
# --------------------------------------------------------------------------- #

def build_credit_analytics(transactions: Rows) -> CreditAnalytics:
    added = 0
    used = 0
    flow: dict[datetime, CreditFlowMonth] = {}
    usage: dict[str, int] = {}

    for txn in transactions:
        amount = int(to_number(txn.get("amount")))
        if amount > 0:
            added += amount
        else:
            used += abs(amount)
            if amount < 0:
                category = txn.get("reference_id") or "Other"
                usage[category] = usage.get(category, 0) + abs(amount)

        stamp = to_utc(txn.get("created_at"))
        if stamp is None:
            continue
        key = start_of_month(stamp)
        entry = flow.setdefault(key, CreditFlowMonth(date=key.strftime("%b %y")))
        if amount > 0:
            entry.credits_added += amount
        else:
            entry.credits_used += abs(amount)

    top_usage = sorted(usage.items(), key=lambda kv: kv[1], reverse=True)[: ANALYTICS_SETTINGS["top_n"]]
    return CreditAnalytics(
        total_transactions=len(transactions),
        credits_added=added,
        credits_used=used,
        net_credits=added - used,
        type_distribution=_distribution(transactions, "transaction_type", "Other"),
        volume_history=monthly_totals(transactions, "created_at"),
        flow_history=[flow[key] for key in sorted(flow)],
        top_usage_categories=[NameValue(name=name, value=total) for name, total in top_usage],
    )


async def get_credit_analytics(session_factory: SessionFactory) -> CreditAnalytics:
    try:
        transactions = await fetch_all_async(
            session_factory,
            TableQuery(Table.CREDIT_TRANSACTIONS).select("transaction_type", "amount", "created_at", "reference_id"),
        )
        return build_credit_analytics(transactions)
    except Exception as e:
        logger.error("Credit analytics failed", error=str(e), exc_info=True)
        return CreditAnalytics()

# --------------------------------------------------------------------------- #
# Referrals
# --------------------------------------------------------------------------- #

def rank_referrers(referrals: Rows, n: int) -> list[TopReferrer]:
    stats: dict[str, TopReferrer] = {}
    for ref in referrals:
        uid = ref.get("referrer_uid")
        if not uid:
            continue
        entry = stats.setdefault(uid, TopReferrer(uid=uid))
        entry.count += 1
        entry.total_credits += int(to_number(ref.get("referrer_credits_awarded")))
        if ref.get("status") == ReferralStatus.REWARDED.value:
            entry.successful_referrals += 1
    return sorted(stats.values(), key=lambda r: r.count, reverse=True)[:n]


def build_referral_analytics(referrals: Rows, users_by_uid: Mapping[str, Mapping[str, Any]], top: list[TopReferrer]) -> ReferralAnalytics:
    referrer_credits = int(sum(to_number(r.get("referrer_credits_awarded")) for r in referrals))
    referee_credits = int(sum(to_number(r.get("referee_credits_awarded")) for r in referrals))

    for referrer in top:
        user = users_by_uid.get(referrer.uid)
        if user:
            referrer.name = user.get("full_name") or user.get("name") or "Unknown"
            referrer.email = user.get("email") or ""

    return ReferralAnalytics(
        total_referrals=len(referrals),
        successful_referrals=sum(1 for r in referrals if r.get("status") == ReferralStatus.REWARDED.value),
        pending_referrals=sum(1 for r in referrals if r.get("status") == ReferralStatus.PENDING.value),
        total_credits_awarded=referrer_credits + referee_credits,
        total_referrer_credits=referrer_credits,
        total_referee_credits=referee_credits,
        status_distribution=_distribution(referrals, "status", "Pending"),
        referrals_history=monthly_totals(referrals, "created_at"),
        top_referrers=top,
    )


async def get_referral_analytics(session_factory: SessionFactory) -> ReferralAnalytics:
    try:
        referrals = await fetch_all_async(
            session_factory,
            TableQuery(Table.REFERRALS).select(
                "referrer_uid", "referee_uid", "status",
                "referrer_credits_awarded", "referee_credits_awarded", "created_at",
            ),
        )
        top = rank_referrers(referrals, ANALYTICS_SETTINGS["top_n"])
        users: Rows = []
        if top:
            users = await fetch_all_async(
                session_factory,
                TableQuery(Table.ALL_USERS).select("uid", "name", "email", "full_name").in_("uid", [r.uid for r in top]),
            )
        return build_referral_analytics(referrals, {u["uid"]: u for u in users}, top)
    except Exception as e:
        logger.error("Referral analytics failed", error=str(e), exc_info=True)
        return ReferralAnalytics()

# --------------------------------------------------------------------------- #
# Subscriptions
# --------------------------------------------------------------------------- #

def rank_subscribers(subscriptions: Rows, n: int) -> list[TopSubscriber]:
    stats: dict[str, TopSubscriber] = {}
    for sub in subscriptions:
        uid = sub.get("company_uid")
        if not uid:
            continue
        entry = stats.setdefault(uid, TopSubscriber(uid=uid, current_plan=sub.get("plan") or "Free"))
        entry.count += 1
        entry.total_spent += to_number(sub.get("amount"))
        if sub.get("status") == SubscriptionStatus.ACTIVE.value:
            entry.active_subscriptions += 1
            entry.current_plan = sub.get("plan") or "Free"
    return sorted(stats.values(), key=lambda s: s.total_spent, reverse=True)[:n]


def build_subscription_analytics(
    subscriptions: Rows,
    companies_by_uid: Mapping[str, Mapping[str, Any]],
    top: list[TopSubscriber],
    now: datetime,
) -> SubscriptionAnalytics:
    total_revenue = 0.0
    active_revenue = 0.0
    for sub in subscriptions:
        amount = to_number(sub.get("amount"))
        total_revenue += amount
        end_date = to_utc(sub.get("end_date"))
        if sub.get("status") == SubscriptionStatus.ACTIVE.value and end_date is not None and end_date > now:
            active_revenue += amount

    for subscriber in top:
        company = companies_by_uid.get(subscriber.uid)
        if company:
            subscriber.name = company.get("company_name") or "Unknown"
            subscriber.email = company.get("email") or ""

    return SubscriptionAnalytics(
        total_subscriptions=len(subscriptions),
        active_subscriptions=sum(1 for s in subscriptions if s.get("status") == SubscriptionStatus.ACTIVE.value),
        cancelled_subscriptions=sum(1 for s in subscriptions if s.get("status") == SubscriptionStatus.CANCELLED.value),
        total_revenue=total_revenue,
        active_revenue=active_revenue,
        plan_distribution=_distribution(subscriptions, "plan", "Free"),
        status_distribution=_distribution(subscriptions, "status", "Unknown"),
        subscriptions_history=monthly_totals(subscriptions, "created_at"),
        revenue_history=monthly_totals(subscriptions, "created_at", lambda s: to_number(s.get("amount"))),
        top_subscribers=top,
    )


async def get_subscription_analytics(session_factory: SessionFactory, now: Optional[datetime] = None) -> SubscriptionAnalytics:
    now = now or utc_now()
    try:
        subscriptions = await fetch_all_async(
            session_factory,
            TableQuery(Table.SUBSCRIPTION_HISTORY).select(
                "plan", "status", "start_date", "end_date", "amount", "created_at", "company_uid",
            ),
        )
        top = rank_subscribers(subscriptions, ANALYTICS_SETTINGS["top_n"])
        companies: Rows = []
        if top:
            companies = await fetch_all_async(
                session_factory,
                TableQuery(Table.COMPANIES).select("uid", "company_name", "email").in_("uid", [s.uid for s in top]),
            )
        return build_subscription_analytics(subscriptions, {c["uid"]: c for c in companies}, top, now)
    except Exception as e:
        logger.error("Subscription analytics failed", error=str(e), exc_info=True)
        return SubscriptionAnalytics()


__all__ = [
    "monthly_totals",
    "build_credit_analytics",
    "get_credit_analytics",
    "rank_referrers",
    "build_referral_analytics",
    "get_referral_analytics",
    "rank_subscribers",
    "build_subscription_analytics",
    "get_subscription_analytics",
]
