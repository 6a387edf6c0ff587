from types import SimpleNamespace

import pytest
from firebase_admin import exceptions as firebase_exceptions, messaging

from ajira_admin import config
from ajira_admin.integrations import push
from ajira_admin.integrations.push import (
    INVALID_ARGUMENT,
    INVALID_TOKEN,
    UNREGISTERED,
    FirebasePushSender,
    PushPayload,
    build_multicast_message,
    error_code_for,
)
from ajira_admin.services.notification_broadcaster import send_batches

PAYLOAD = PushPayload(
    title="New jobs",
    body="Ten new roles today",
    sent_at="2025-06-15T10:00:00+00:00",
    image_url="https://cdn.example.com/banner.png",
    action_url="ajira://jobs",
)


def _invalid(message):
    return firebase_exceptions.InvalidArgumentError(message)


@pytest.mark.parametrize("exc,expected", [
    (None, None),
    (messaging.UnregisteredError("Requested entity was not found."), UNREGISTERED),
    (_invalid("The registration token is not a valid FCM registration token"), INVALID_TOKEN),
    (_invalid("Request contains an invalid argument: notification.image"), INVALID_ARGUMENT),
    (_invalid("Invalid data payload key: from"), INVALID_ARGUMENT),
    (firebase_exceptions.InternalError("backend error"), "internal"),
])
def test_error_code_for(exc, expected):
    assert error_code_for(exc) == expected


def test_multicast_message_shape():
    message = build_multicast_message(PAYLOAD, ["tok-1", "tok-2"])

    assert message.tokens == ["tok-1", "tok-2"]
    assert message.notification.title == "New jobs"
    assert message.notification.body == "Ten new roles today"
    assert message.notification.image == "https://cdn.example.com/banner.png"
    assert message.data == {"sent_at": "2025-06-15T10:00:00+00:00", "click_action": "ajira://jobs"}

    assert message.android.priority == "high"
    assert message.android.notification.channel_id == "default"
    assert message.android.notification.sound == "default"

    assert message.apns.payload.aps.sound == "default"
    assert message.apns.payload.aps.badge == 1


def test_multicast_message_without_optional_fields():
    payload = PushPayload(title="Hi", body="There", sent_at="2025-06-15T10:00:00+00:00")
    message = build_multicast_message(payload, ["tok-1"])
    assert message.notification.image is None
    assert message.data == {"sent_at": "2025-06-15T10:00:00+00:00"}


def _response(*results):
    responses = [SimpleNamespace(success=exc is None, exception=exc) for exc in results]
    failed = sum(1 for r in responses if not r.success)
    return SimpleNamespace(responses=responses, success_count=len(responses) - failed, failure_count=failed)


@pytest.fixture()
def firebase_sender(monkeypatch):
    def _make(response):
        sent = []

        def _send(message, app=None):
            sent.append((message, app))
            return response

        monkeypatch.setattr(push.messaging, "send_each_for_multicast", _send)
        monkeypatch.setattr(FirebasePushSender, "_get_app", lambda self: "test-app")
        sender = FirebasePushSender("ajira-test", "push@ajira-test.iam.gserviceaccount.com", "key")
        return sender, sent
    return _make


def test_send_batch_maps_outcomes(firebase_sender):
    sender, sent = firebase_sender(_response(
        None,
        messaging.UnregisteredError("Requested entity was not found."),
        _invalid("The registration token is not a valid FCM registration token"),
    ))

    outcome = sender.send_batch(PAYLOAD, ["ok", "gone", "bad"])

    assert (outcome.success_count, outcome.failure_count) == (1, 2)
    assert [(o.token, o.success, o.error_code) for o in outcome.outcomes] == [
        ("ok", True, None),
        ("gone", False, UNREGISTERED),
        ("bad", False, INVALID_TOKEN),
    ]
    assert sent[0][1] == "test-app"
    assert sent[0][0].tokens == ["ok", "gone", "bad"]


def test_payload_error_does_not_prune_tokens(firebase_sender):
    error = _invalid("Request contains an invalid argument: notification.image")
    sender, _ = firebase_sender(_response(error, error, error))

    delivered, failed, to_prune = send_batches(sender, PAYLOAD, ["a", "b", "c"])

    assert (delivered, failed) == (0, 3)
    assert to_prune == []


def test_dead_tokens_are_queued_for_pruning(firebase_sender):
    sender, _ = firebase_sender(_response(
        messaging.UnregisteredError("Requested entity was not found."),
        _invalid("The registration token is not a valid FCM registration token"),
        None,
    ))
    _, _, to_prune = send_batches(sender, PAYLOAD, ["gone", "bad", "ok"])
    assert to_prune == ["gone", "bad"]


def test_private_key_newlines_are_unescaped():
    sender = FirebasePushSender("p", "e@example.com", "-----BEGIN-----\\nabc\\n-----END-----")
    assert sender.private_key == "-----BEGIN-----\nabc\n-----END-----"


def test_from_config_requires_all_credentials(monkeypatch):
    monkeypatch.setattr(config, "FIREBASE_PROJECT_ID", "ajira-test")
    monkeypatch.setattr(config, "FIREBASE_CLIENT_EMAIL", "push@example.com")
    monkeypatch.setattr(config, "FIREBASE_PRIVATE_KEY", None)
    assert FirebasePushSender.from_config() is None

    monkeypatch.setattr(config, "FIREBASE_PRIVATE_KEY", "key")
    sender = FirebasePushSender.from_config()
    assert sender is not None
    assert sender.project_id == "ajira-test"
