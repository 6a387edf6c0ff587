"""AI career-assistant usage: conversations, messages and answer feedback."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ajira_admin.config import ANALYTICS_SETTINGS
from ajira_admin.models.db.enums import ChatFeedback, ChatRole
from ajira_admin.models.schemas import AIChatAnalytics
from ajira_admin.models.schemas.analytics import AIChatFeedback, AIChatMessages, AIChatMonth, AIChatOverview, ChatUser
from ajira_admin.services.bulk_fetcher import SessionFactory, Table, TableQuery, gather_queries
from ajira_admin.services.revenue_reconciliation import rows_in_window
from ajira_admin.utils import get_logger
from ajira_admin.utils.metrics import count_by, safe_div
from ajira_admin.utils.time import start_of_month, sub_days, sub_months, to_utc, utc_now

logger = get_logger(__name__)

Rows = list[Mapping[str, Any]]

AI_CHAT_QUERIES = (
    TableQuery(Table.AI_CHAT_CONVERSATIONS).select("conversation_id", "user_uid", "created_at"),
    TableQuery(Table.AI_CHAT_MESSAGES).select("conversation_id", "role", "content", "created_at"),
    TableQuery(Table.AI_CHAT_FEEDBACK).select("message_id", "feedback_type", "created_at"),
)


def avg_duration_minutes(messages: Rows) -> int:
    """Mean first-to-last message span over conversations with at least two messages."""
    spans: dict[str, list[datetime]] = {}
    for msg in messages:
        stamp = to_utc(msg.get("created_at"))
        if stamp is None or not msg.get("conversation_id"):
            continue
        spans.setdefault(msg["conversation_id"], []).append(stamp)

    durations = []
    for stamps in spans.values():
        if len(stamps) < 2:
            continue
        minutes = (max(stamps) - min(stamps)).total_seconds() / 60
        if minutes > 0:
            durations.append(minutes)
    return round(safe_div(sum(durations), len(durations)))


def monthly_activity(conversations: Rows, messages: Rows, now: datetime, months: int) -> list[AIChatMonth]:
    growth: list[AIChatMonth] = []
    for offset in range(months - 1, -1, -1):
        month_start = start_of_month(sub_months(now, offset))
        month_end = now if offset == 0 else start_of_month(sub_months(now, offset - 1))
        growth.append(
            AIChatMonth(
                month=month_start.strftime("%b %Y"),
                conversations=len(rows_in_window(conversations, month_start, month_end, field_name="created_at")),
                messages=len(rows_in_window(messages, month_start, month_end, field_name="created_at")),
            )
        )
    return growth


def top_chat_users(conversations: Rows, n: int) -> list[ChatUser]:
    counts = count_by(c["user_uid"] for c in conversations if c.get("user_uid"))
    return [ChatUser(uid=uid, conversations=total) for uid, total in counts.most_common(n)]


def build_ai_chat_analytics(conversations: Rows, messages: Rows, feedback: Rows, now: datetime) -> AIChatAnalytics:
    total_conversations = len(conversations)
    total_messages = len(messages)

    user_messages = [m for m in messages if m.get("role") == ChatRole.USER.value]
    assistant_messages = sum(1 for m in messages if m.get("role") == ChatRole.ASSISTANT.value)

    last_7 = sub_days(now, 7)
    last_30 = sub_months(now, 1)
    recent_messages = rows_in_window(messages, last_7, field_name="created_at")
    active_conversations = len({m["conversation_id"] for m in recent_messages if m.get("conversation_id")})

    per_conversation = round(safe_div(total_messages, total_conversations), 2)
    avg_length = round(safe_div(sum(len(m.get("content") or "") for m in user_messages), len(user_messages)))

    likes = sum(1 for f in feedback if f.get("feedback_type") == ChatFeedback.LIKE.value)
    dislikes = sum(1 for f in feedback if f.get("feedback_type") == ChatFeedback.DISLIKE.value)

    return AIChatAnalytics(
        overview=AIChatOverview(
            total_conversations=total_conversations,
            total_messages=total_messages,
            unique_users=len({c["user_uid"] for c in conversations if c.get("user_uid")}),
            active_conversations=active_conversations,
            conversations_last_30_days=len(rows_in_window(conversations, last_30, field_name="created_at")),
            messages_last_30_days=len(rows_in_window(messages, last_30, field_name="created_at")),
            conversations_last_7_days=len(rows_in_window(conversations, last_7, field_name="created_at")),
            avg_messages_per_conversation=per_conversation,
            avg_message_length=avg_length,
            avg_conversation_duration=avg_duration_minutes(messages),
        ),
        messages=AIChatMessages(
            total=total_messages,
            user_messages=len(user_messages),
            assistant_messages=assistant_messages,
            avg_per_conversation=per_conversation,
        ),
        feedback=AIChatFeedback(
            total=len(feedback),
            likes=likes,
            dislikes=dislikes,
            feedback_rate=round(safe_div(len(feedback), assistant_messages) * 100, 1),
            satisfaction_rate=round(safe_div(likes, len(feedback)) * 100, 1),
        ),
        growth=monthly_activity(conversations, messages, now, ANALYTICS_SETTINGS["history_months"]),
        top_users=top_chat_users(conversations, ANALYTICS_SETTINGS["top_n"]),
    )


async def get_ai_chat_analytics(session_factory: SessionFactory, now: Optional[datetime] = None) -> AIChatAnalytics:
    now = now or utc_now()
    try:
        conversations, messages, feedback = await gather_queries(session_factory, *AI_CHAT_QUERIES)
        return build_ai_chat_analytics(conversations, messages, feedback, now)
    except Exception as e:
        logger.error("AI chat analytics failed", error=str(e), exc_info=True)
        return AIChatAnalytics()


__all__ = [
    "AI_CHAT_QUERIES",
    "avg_duration_minutes",
    "monthly_activity",
    "top_chat_users",
    "build_ai_chat_analytics",
    "get_ai_chat_analytics",
]
