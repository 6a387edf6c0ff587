import asyncio
from datetime import datetime, timedelta, timezone

from ajira_admin.services.finance_analytics import (
    build_credit_analytics,
    get_credit_analytics,
    get_referral_analytics,
    get_subscription_analytics,
    monthly_totals,
    rank_referrers,
)

NOW = datetime(2025, 6, 15, 10, 0, tzinfo=timezone.utc)


def test_monthly_totals_chronological():
    rows = [
        {"created_at": datetime(2025, 3, 2, tzinfo=timezone.utc), "amount": 5},
        {"created_at": datetime(2024, 12, 9, tzinfo=timezone.utc), "amount": 1},
        {"created_at": datetime(2025, 3, 20, tzinfo=timezone.utc), "amount": 2},
        {"created_at": None, "amount": 100},
    ]
    counts = monthly_totals(rows, "created_at")
    assert [(m.date, m.value) for m in counts] == [("Dec 24", 1), ("Mar 25", 2)]

    sums = monthly_totals(rows, "created_at", lambda r: r["amount"])
    assert [(m.date, m.value) for m in sums] == [("Dec 24", 1), ("Mar 25", 7)]


def test_credit_analytics_flows():
    transactions = [
        {"amount": 100, "transaction_type": "purchase", "created_at": datetime(2025, 5, 1, tzinfo=timezone.utc)},
        {"amount": -30, "transaction_type": "job_application", "reference_id": "apply", "created_at": datetime(2025, 5, 3, tzinfo=timezone.utc)},
        {"amount": -10, "transaction_type": "resume", "reference_id": None, "created_at": datetime(2025, 6, 1, tzinfo=timezone.utc)},
        {"amount": 0, "transaction_type": None, "created_at": datetime(2025, 6, 2, tzinfo=timezone.utc)},
    ]
    result = build_credit_analytics(transactions)

    assert result.total_transactions == 4
    assert result.credits_added == 100
    assert result.credits_used == 40
    assert result.net_credits == 60
    assert {t.name: t.value for t in result.type_distribution} == {
        "Purchase": 1, "Job_application": 1, "Resume": 1, "Other": 1,
    }
    assert [(f.date, f.credits_added, f.credits_used) for f in result.flow_history] == [
        ("May 25", 100, 30), ("Jun 25", 0, 10),
    ]
    assert [(c.name, c.value) for c in result.top_usage_categories] == [("apply", 30), ("Other", 10)]


def test_get_credit_analytics_reads_store(session_factory, credit_factory):
    credit_factory(25, transaction_type="bonus")
    credit_factory(-5, transaction_type="spend", reference_id="boost")
    result = asyncio.run(get_credit_analytics(session_factory))
    assert result.credits_added == 25
    assert result.credits_used == 5


def test_rank_referrers():
    referrals = [
        {"referrer_uid": "a", "status": "rewarded", "referrer_credits_awarded": 10},
        {"referrer_uid": "a", "status": "pending", "referrer_credits_awarded": 0},
        {"referrer_uid": "b", "status": "rewarded", "referrer_credits_awarded": 10},
        {"referrer_uid": None, "status": "pending"},
    ]
    top = rank_referrers(referrals, 10)
    assert [(r.uid, r.count, r.successful_referrals, r.total_credits) for r in top] == [
        ("a", 2, 1, 10), ("b", 1, 1, 10),
    ]


def test_referral_analytics_with_names(session_factory, user_factory, referral_factory):
    user_factory(uid="ref-1", full_name="Amina Otieno", email="amina@example.com")
    user_factory(uid="ref-2", name="Brian", email="brian@example.com")
    referral_factory(referrer_uid="ref-1", referee_uid="x", status="rewarded", referrer_credits_awarded=10, referee_credits_awarded=5)
    referral_factory(referrer_uid="ref-1", referee_uid="y", status="pending")
    referral_factory(referrer_uid="ref-2", referee_uid="z", status="rewarded", referrer_credits_awarded=10, referee_credits_awarded=5)
    referral_factory(referrer_uid="ghost", referee_uid="w", status="pending")

    result = asyncio.run(get_referral_analytics(session_factory))

    assert result.total_referrals == 4
    assert result.successful_referrals == 2
    assert result.pending_referrals == 2
    assert result.total_referrer_credits == 20
    assert result.total_referee_credits == 10
    assert result.total_credits_awarded == 30
    names = {r.uid: (r.name, r.email) for r in result.top_referrers}
    assert names["ref-1"] == ("Amina Otieno", "amina@example.com")
    assert names["ref-2"] == ("Brian", "brian@example.com")
    assert result.top_referrers[0].uid == "ref-1"
    assert names["ghost"] == (None, None)
    assert [(m.date, m.value) for m in result.referrals_history] == [("Jun 25", 4)]


def test_subscription_analytics(session_factory, company_factory, subscription_factory):
    company_factory(uid="co-1", company_name="Acme Ltd", email="hr@acme.example")
    subscription_factory(company_uid="co-1", plan="premium", status="active", amount=50, end_date=NOW + timedelta(days=20))
    subscription_factory(company_uid="co-1", plan="basic", status="expired", amount=10, end_date=NOW - timedelta(days=20))
    subscription_factory(company_uid="co-2", plan="basic", status="cancelled", amount=20, end_date=NOW + timedelta(days=5))
    subscription_factory(company_uid="co-3", plan=None, status="active", amount=0, end_date=NOW - timedelta(days=1))

    result = asyncio.run(get_subscription_analytics(session_factory, now=NOW))

    assert result.total_subscriptions == 4
    assert result.active_subscriptions == 2
    assert result.cancelled_subscriptions == 1
    assert result.total_revenue == 80.0
    # active and not yet ended
    assert result.active_revenue == 50.0
    assert {p.name: p.value for p in result.plan_distribution} == {"Premium": 1, "Basic": 2, "Free": 1}

    top = result.top_subscribers[0]
    assert top.uid == "co-1"
    assert top.total_spent == 60.0
    assert top.active_subscriptions == 1
    assert top.current_plan == "premium"
    assert top.name == "Acme Ltd"
    assert top.email == "hr@acme.example"


def test_empty_tables_give_zero_models(session_factory):
    credits = asyncio.run(get_credit_analytics(session_factory))
    referrals = asyncio.run(get_referral_analytics(session_factory))
    subscriptions = asyncio.run(get_subscription_analytics(session_factory, now=NOW))
    assert credits.total_transactions == 0
    assert referrals.top_referrers == []
    assert subscriptions.total_revenue == 0
