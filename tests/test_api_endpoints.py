from datetime import datetime, timedelta, timezone

import pytest

from ajira_admin import config
from ajira_admin.api import deps

NOW = datetime(2025, 6, 15, 10, 0, tzinfo=timezone.utc)

ANALYTICS_ROUTES = [
    "/api/v1/analytics/earnings",
    "/api/v1/analytics/platform",
    "/api/v1/analytics/dashboard",
    "/api/v1/analytics/credits",
    "/api/v1/analytics/referrals",
    "/api/v1/analytics/subscriptions",
    "/api/v1/analytics/notifications",
    "/api/v1/analytics/users",
    "/api/v1/analytics/jobs",
    "/api/v1/analytics/companies",
    "/api/v1/analytics/applications",
    "/api/v1/analytics/interviews",
    "/api/v1/analytics/ai-chat",
]


def test_missing_bearer_token_is_401(client, admin_token):
    r = client.get("/api/v1/analytics/earnings")
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_wrong_bearer_token_is_403(client, admin_token):
    r = client.get("/api/v1/analytics/earnings", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 403


def test_unconfigured_admin_token_is_503(client, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_API_TOKEN", None)
    r = client.get("/api/v1/analytics/earnings", headers={"Authorization": "Bearer anything"})
    assert r.status_code == 503


@pytest.mark.parametrize("path", ANALYTICS_ROUTES)
def test_analytics_routes_on_empty_store(client, auth_header, path):
    r = client.get(path, headers=auth_header)
    assert r.status_code == 200, r.text
    assert isinstance(r.json(), dict)


def test_earnings_analytics_totals(client, auth_header, earning_factory):
    earning_factory(12.5, "subscription", datetime.now(timezone.utc) - timedelta(days=1))
    r = client.get("/api/v1/analytics/earnings", headers=auth_header)
    body = r.json()
    assert body["total_earnings"] == 12.5
    assert body["subscription_earnings"] == 12.5
    assert body["admob_live"] is False


def test_analytics_timing_is_logged(client, auth_header, monkeypatch, user_factory):
    from ajira_admin.utils import observability

    logged = []
    monkeypatch.setattr(observability, "log_performance", lambda op, ms, data: logged.append((op, data)))
    user_factory(is_blocked=True)

    r = client.get("/api/v1/analytics/users", headers={**auth_header, "X-Request-ID": "req-42"})

    assert r.json()["blocked_users"] == 1
    assert logged == [("get_user_analytics", {"request_id": "req-42", "users": 1})]


def test_ai_chat_analytics_route(client, auth_header, conversation_factory, chat_message_factory):
    conv = conversation_factory("user_9")
    chat_message_factory(conv.conversation_id, "user", "hi")
    chat_message_factory(conv.conversation_id, "assistant", "hello")

    body = client.get("/api/v1/analytics/ai-chat", headers=auth_header).json()

    assert body["overview"]["total_conversations"] == 1
    assert body["messages"]["assistant_messages"] == 1
    assert body["top_users"] == [{"uid": "user_9", "conversations": 1}]


def test_all_time_admob_without_credentials(client, auth_header):
    r = client.get("/api/v1/earnings/admob/all-time", headers=auth_header)
    assert r.status_code == 200
    assert r.json()["live"] is False
    assert r.json()["total"] == 0


def test_all_time_admob_with_client(client, auth_header, override_dependency, fake_admob, admob_rows):
    override_dependency(deps.get_admob_client, fake_admob(admob_rows(4.0, 6.0)))
    r = client.get("/api/v1/earnings/admob/all-time", headers=auth_header)
    assert r.json()["live"] is True
    assert r.json()["total"] == 10.0


def test_admob_sync_without_credentials(client, auth_header):
    r = client.post("/api/v1/earnings/admob/sync", headers=auth_header)
    assert r.status_code == 200
    assert r.json()["success"] is False
    assert r.json()["error"] == "AdMob credentials missing"


def test_admob_sync_with_client(client, auth_header, override_dependency, fake_admob, admob_rows):
    today = datetime.now(timezone.utc).date()
    override_dependency(deps.get_admob_client, fake_admob(admob_rows(1.0, start=today)))
    r = client.post("/api/v1/earnings/admob/sync", params={"days": 7}, headers=auth_header)
    body = r.json()
    assert body["success"] is True
    assert body["inserted"] == 1


def test_admob_sync_days_out_of_range(client, auth_header):
    r = client.post("/api/v1/earnings/admob/sync", params={"days": 0}, headers=auth_header)
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Request validation failed"
    assert body["details"]
    assert "request_id" in body


def test_send_notification_without_push_configured(client, auth_header):
    r = client.post(
        "/api/v1/notifications/send",
        json={"title": "Hi", "message": "There", "recipient_type": "all"},
        headers=auth_header,
    )
    assert r.status_code == 200
    assert r.json()["success"] is False
    assert r.json()["error"] == "Push notifications are not configured"


def test_send_notification_validation_is_200(client, auth_header, override_dependency, fake_push):
    override_dependency(deps.get_push_sender, fake_push())
    r = client.post(
        "/api/v1/notifications/send",
        json={"title": "  ", "message": "There", "recipient_type": "all"},
        headers=auth_header,
    )
    assert r.status_code == 200
    assert r.json()["success"] is False


def test_send_notification_and_history(client, auth_header, override_dependency, fake_push, user_factory):
    user_factory(uid="u1", token="tok-1", role="seeker")
    user_factory(uid="u2", token="tok-2", role="employer")
    user_factory(uid="u3", token=None)
    sender = fake_push()
    override_dependency(deps.get_push_sender, sender)

    r = client.post(
        "/api/v1/notifications/send",
        json={"title": "New jobs", "message": "Ten new roles today", "recipient_type": "all", "sent_by": "ops"},
        headers=auth_header,
    )
    body = r.json()
    assert body["success"] is True
    assert body["delivered"] == 2
    assert body["total"] == 3
    assert sorted(sender.batches[0]) == ["tok-1", "tok-2"]

    history = client.get("/api/v1/notifications/history", headers=auth_header).json()
    assert history["total"] == 1
    assert history["items"][0]["title"] == "New jobs"
    assert history["items"][0]["delivery_count"] == 2
    assert history["items"][0]["sent_by"] == "ops"


def test_history_pagination(client, auth_header, notification_factory):
    for i in range(3):
        notification_factory(title=f"n{i}", sent_at=NOW - timedelta(days=i))
    r = client.get("/api/v1/notifications/history", params={"limit": 2, "offset": 1}, headers=auth_header)
    body = r.json()
    assert body["total"] == 3
    assert [item["title"] for item in body["items"]] == ["n1", "n2"]


def test_root_and_health(client):
    root = client.get("/").json()
    assert root["api_base"] == "/api/v1"

    health = client.get("/health").json()
    assert health["status"] == "healthy"

    detailed = client.get("/health/detailed").json()
    assert detailed["checks"]["database"] == "healthy"
    assert detailed["checks"]["admob"] in {"configured", "not_configured"}


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_history_rejects_oversized_limit(client, auth_header):
    r = client.get("/api/v1/notifications/history", params={"limit": 501}, headers=auth_header)
    assert r.status_code == 400
    assert r.json()["message"] == "Limit must be between 1 and 500"
