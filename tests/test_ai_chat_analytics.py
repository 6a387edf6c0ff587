import asyncio
from datetime import datetime, timedelta, timezone

from ajira_admin.services.ai_chat_analytics import (
    avg_duration_minutes,
    build_ai_chat_analytics,
    get_ai_chat_analytics,
    monthly_activity,
    top_chat_users,
)

NOW = datetime(2025, 6, 15, 10, 0, tzinfo=timezone.utc)


def _msg(conversation_id, role, content="", at=NOW):
    return {"conversation_id": conversation_id, "role": role, "content": content, "created_at": at}


def test_duration_skips_single_message_and_zero_span():
    messages = [
        _msg("a", "user", at=NOW - timedelta(minutes=30)),
        _msg("a", "assistant", at=NOW - timedelta(minutes=20)),
        _msg("b", "user", at=NOW - timedelta(minutes=5)),
        _msg("b", "assistant", at=NOW - timedelta(minutes=5)),
        _msg("c", "user"),
    ]
    assert avg_duration_minutes(messages) == 10


def test_duration_with_no_multi_message_conversations():
    assert avg_duration_minutes([_msg("a", "user")]) == 0


def test_monthly_activity_window():
    conversations = [
        {"created_at": datetime(2025, 1, 31, tzinfo=timezone.utc)},
        {"created_at": datetime(2025, 6, 1, tzinfo=timezone.utc)},
        {"created_at": datetime(2024, 12, 31, tzinfo=timezone.utc)},
    ]
    messages = [_msg("x", "user", at=datetime(2025, 6, 2, tzinfo=timezone.utc))]
    growth = monthly_activity(conversations, messages, NOW, 6)

    assert [g.month for g in growth] == ["Jan 2025", "Feb 2025", "Mar 2025", "Apr 2025", "May 2025", "Jun 2025"]
    assert [(g.conversations, g.messages) for g in growth] == [(1, 0), (0, 0), (0, 0), (0, 0), (0, 0), (1, 1)]


def test_top_chat_users_skips_anonymous():
    conversations = [{"user_uid": "u1"}, {"user_uid": "u2"}, {"user_uid": "u2"}, {"user_uid": None}]
    assert [(u.uid, u.conversations) for u in top_chat_users(conversations, 10)] == [("u2", 2), ("u1", 1)]


def test_build_ai_chat_analytics():
    conversations = [
        {"conversation_id": "a", "user_uid": "u1", "created_at": NOW - timedelta(days=2)},
        {"conversation_id": "b", "user_uid": "u1", "created_at": NOW - timedelta(days=20)},
        {"conversation_id": "c", "user_uid": None, "created_at": NOW - timedelta(days=90)},
        {"conversation_id": "d", "user_uid": "u2", "created_at": NOW - timedelta(days=40)},
    ]
    messages = [
        _msg("a", "user", "abcd", NOW - timedelta(days=2, minutes=10)),
        _msg("a", "assistant", "answer", NOW - timedelta(days=2)),
        _msg("b", "user", "ab", NOW - timedelta(days=20)),
        _msg("b", "assistant", "answer", NOW - timedelta(days=20)),
        _msg("c", "assistant", "hi", NOW - timedelta(days=90)),
    ]
    feedback = [{"feedback_type": "like"}, {"feedback_type": "like"}, {"feedback_type": "dislike"}]

    result = build_ai_chat_analytics(conversations, messages, feedback, NOW)
    overview = result.overview

    assert overview.total_conversations == 4
    assert overview.total_messages == 5
    assert overview.unique_users == 2
    assert overview.active_conversations == 1
    assert overview.conversations_last_30_days == 2
    assert overview.conversations_last_7_days == 1
    assert overview.messages_last_30_days == 4
    assert overview.avg_messages_per_conversation == 1.25
    assert overview.avg_message_length == 3
    assert overview.avg_conversation_duration == 10

    assert (result.messages.user_messages, result.messages.assistant_messages) == (2, 3)
    assert (result.feedback.likes, result.feedback.dislikes) == (2, 1)
    assert result.feedback.feedback_rate == 100.0
    assert result.feedback.satisfaction_rate == 66.7
    assert [(u.uid, u.conversations) for u in result.top_users] == [("u1", 2), ("u2", 1)]
    assert len(result.growth) == 6


def test_empty_store_is_all_zero():
    result = build_ai_chat_analytics([], [], [], NOW)
    assert result.overview.avg_messages_per_conversation == 0
    assert result.feedback.satisfaction_rate == 0
    assert result.top_users == []


def test_get_ai_chat_analytics_reads_store(session_factory, conversation_factory, chat_message_factory, chat_feedback_factory):
    conv = conversation_factory("user_1")
    question = chat_message_factory(conv.conversation_id, "user", "Tips for interviews?")
    answer = chat_message_factory(conv.conversation_id, "assistant", "Prepare examples.", created_at=NOW + timedelta(minutes=4))
    chat_feedback_factory("dislike", message_id=answer.id, user_uid="user_1")

    result = asyncio.run(get_ai_chat_analytics(session_factory, now=NOW + timedelta(hours=1)))

    assert result.overview.total_conversations == 1
    assert result.overview.avg_conversation_duration == 4
    assert result.overview.avg_message_length == len(question.content)
    assert result.feedback.satisfaction_rate == 0
    assert result.feedback.feedback_rate == 100.0


def test_store_failure_returns_zero_model(monkeypatch):
    from ajira_admin.services import ai_chat_analytics

    async def _boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(ai_chat_analytics, "gather_queries", _boom)
    result = asyncio.run(get_ai_chat_analytics(lambda: None, now=NOW))
    assert result.overview.total_conversations == 0
    assert result.growth == []
