import asyncio
from datetime import datetime, timezone
from datetime import timedelta

import pytest

from ajira_admin.models.db import AppUser, Earning
from ajira_admin.services import bulk_fetcher
from ajira_admin.services.bulk_fetcher import Table, TableQuery, fetch_all, gather_queries, run_query

NOW = datetime(2025, 6, 15, 10, 0, tzinfo=timezone.utc)


def _count_pages(monkeypatch):
    calls = []
    original = bulk_fetcher.fetch_page

    def _spy(session, query, offset, limit, with_count=False):
        calls.append((offset, limit, with_count))
        return original(session, query, offset, limit, with_count=with_count)

    monkeypatch.setattr(bulk_fetcher, "fetch_page", _spy)
    return calls


def _seed_users(db_session, n, prefix="u"):
    db_session.add_all([AppUser(uid=f"{prefix}{i:05d}", role="seeker", created_at=NOW) for i in range(n)])
    db_session.commit()


def test_fetch_all_empty_table_single_request(db_session, monkeypatch):
    calls = _count_pages(monkeypatch)
    rows = fetch_all(db_session, TableQuery(Table.ALL_USERS))
    assert rows == []
    assert len(calls) == 1
    assert calls[0] == (0, 1000, True)


def test_fetch_all_short_page_stops(db_session, monkeypatch):
    _seed_users(db_session, 7)
    calls = _count_pages(monkeypatch)
    rows = fetch_all(db_session, TableQuery(Table.ALL_USERS).select("uid"), page_size=5)
    assert [r["uid"] for r in rows] == [f"u{i:05d}" for i in range(7)]
    assert [c[0] for c in calls] == [0, 5]
    # count only requested with the first page
    assert [c[2] for c in calls] == [True, False]


def test_fetch_all_exact_multiple_needs_extra_request(db_session, monkeypatch):
    _seed_users(db_session, 6)
    calls = _count_pages(monkeypatch)
    rows = fetch_all(db_session, TableQuery(Table.ALL_USERS).select("uid"), page_size=3)
    assert len(rows) == 6
    assert [c[0] for c in calls] == [0, 3, 6]


def test_fetch_all_exactly_one_default_page(db_session, monkeypatch):
    _seed_users(db_session, 1000)
    calls = _count_pages(monkeypatch)
    rows = fetch_all(db_session, TableQuery(Table.ALL_USERS).select("uid"))
    assert len(rows) == 1000
    assert len(calls) == 2


def test_fetch_all_2500_rows_three_pages_no_duplicates(db_session, monkeypatch):
    _seed_users(db_session, 2500)
    calls = _count_pages(monkeypatch)
    rows = fetch_all(db_session, TableQuery(Table.ALL_USERS).select("uid"))
    uids = [r["uid"] for r in rows]
    assert len(uids) == 2500
    assert len(set(uids)) == 2500
    assert [c[0] for c in calls] == [0, 1000, 2000]


def test_filters_and_projection(db_session):
    db_session.add_all([
        AppUser(uid="a", role="seeker", token="tok-a", created_at=NOW),
        AppUser(uid="b", role="employer", token="tok-b", created_at=NOW),
        AppUser(uid="c", role="seeker", token=None, created_at=NOW),
    ])
    db_session.commit()

    seekers = fetch_all(db_session, TableQuery(Table.ALL_USERS).select("uid").eq("role", "seeker"))
    assert [r["uid"] for r in seekers] == ["a", "c"]
    assert set(seekers[0].keys()) == {"uid"}

    with_tokens = fetch_all(
        db_session,
        TableQuery(Table.ALL_USERS).select("uid", "token").in_("uid", ["a", "b", "c"]).not_null("token"),
    )
    assert sorted(r["token"] for r in with_tokens) == ["tok-a", "tok-b"]


def test_between_is_half_open_and_order_desc(db_session):
    start = NOW - timedelta(days=10)
    end = NOW
    db_session.add_all([
        Earning(amount=1, revenue_source="other", earned_at=start),
        Earning(amount=2, revenue_source="other", earned_at=NOW - timedelta(days=1)),
        Earning(amount=3, revenue_source="other", earned_at=end),
    ])
    db_session.commit()

    rows = fetch_all(
        db_session,
        TableQuery(Table.EARNINGS).select("amount").between("earned_at", start, end).order("earned_at", desc=True),
    )
    assert [float(r["amount"]) for r in rows] == [2.0, 1.0]


def test_take_limits_rows(db_session):
    _seed_users(db_session, 12)
    rows = fetch_all(db_session, TableQuery(Table.ALL_USERS).select("uid").order("uid", desc=True).take(5), page_size=3)
    assert [r["uid"] for r in rows] == [f"u{i:05d}" for i in range(11, 6, -1)]


def test_head_query_returns_count(db_session):
    _seed_users(db_session, 4)
    assert run_query(db_session, TableQuery(Table.ALL_USERS).eq("role", "seeker").head()) == 4


def test_gather_queries_runs_each_descriptor(db_session, session_factory):
    _seed_users(db_session, 3)
    users, count = asyncio.run(
        gather_queries(
            session_factory,
            TableQuery(Table.ALL_USERS).select("uid"),
            TableQuery(Table.ALL_USERS).head(),
        )
    )
    assert len(users) == 3
    assert count == 3


def test_page_failure_propagates(db_session, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(bulk_fetcher, "fetch_page", _boom)
    with pytest.raises(RuntimeError):
        fetch_all(db_session, TableQuery(Table.ALL_USERS))
