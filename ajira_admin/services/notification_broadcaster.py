"""Push notification broadcaster.

Single pass, no retries:

    validate -> resolve recipients -> fetch tokens -> build payload
             -> send batches -> prune dead tokens -> persist history

Validation and "nothing to do" conditions come back as
``BroadcastResult(success=False, error=...)`` before any side effect.
After sending starts, failures are counted (batches) or logged (pruning,
history) and the broadcast still reports success with its counts.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ajira_admin.config import NOTIFICATION_SETTINGS, PAGINATION_SETTINGS
from ajira_admin.integrations.push import PushPayload, PushSender
from ajira_admin.models.db import AppUser, NotificationHistory
from ajira_admin.models.db.enums import RecipientType, UserRole
from ajira_admin.models.schemas import BroadcastResult, NotificationList, NotificationRead, NotificationSendRequest
from ajira_admin.services.bulk_fetcher import Table, TableQuery, fetch_all
from ajira_admin.utils import get_logger, log_business_event
from ajira_admin.utils.time import utc_now

logger = get_logger(__name__)


def validate_request(request: NotificationSendRequest) -> Optional[str]:
    """Error message for an invalid request, None when it may be sent."""
    title_max = int(NOTIFICATION_SETTINGS["title_max_length"])
    message_max = int(NOTIFICATION_SETTINGS["message_max_length"])
    if not request.title or not request.title.strip():
        return "Title is required"
    if not request.message or not request.message.strip():
        return "Message is required"
    if len(request.title) > title_max:
        return f"Title must be {title_max} characters or less"
    if len(request.message) > message_max:
        return f"Message must be {message_max} characters or less"
    return None


def recipient_query(recipient_type: RecipientType) -> TableQuery:
    if recipient_type is RecipientType.SEEKERS:
        return TableQuery(Table.ALL_USERS).select("uid").eq("role", UserRole.SEEKER.value)
    if recipient_type is RecipientType.COMPANIES:
        return TableQuery(Table.COMPANIES).select("uid")
    return TableQuery(Table.ALL_USERS).select("uid")


def resolve_recipients(session: Session, request: NotificationSendRequest) -> List[str]:
    if request.recipient_type is RecipientType.SPECIFIC:
        return list(request.recipient_uids or [])
    rows = fetch_all(session, recipient_query(request.recipient_type))
    return [row["uid"] for row in rows if row.get("uid")]


def fetch_tokens(session: Session, uids: List[str]) -> List[str]:
    """Non-null push tokens for ``uids``, looked up in fixed-size uid chunks.

    A failed chunk is logged and skipped.
    """
    chunk_size = int(PAGINATION_SETTINGS["token_lookup_chunk"])
    tokens: List[str] = []
    for start in range(0, len(uids), chunk_size):
        chunk = uids[start:start + chunk_size]
        query = TableQuery(Table.ALL_USERS).select("uid", "token").in_("uid", chunk).not_null("token")
        try:
            rows = fetch_all(session, query)
        except Exception as e:
            session.rollback()
            logger.error("Token lookup failed for uid chunk", chunk_start=start, chunk_size=len(chunk), error=str(e))
            continue
        tokens.extend(row["token"] for row in rows if row.get("token"))
    return tokens


def build_payload(request: NotificationSendRequest, sent_at: datetime) -> PushPayload:
    return PushPayload(
        title=request.title[: int(NOTIFICATION_SETTINGS["title_max_length"])],
        body=request.message[: int(NOTIFICATION_SETTINGS["message_max_length"])],
        sent_at=sent_at.isoformat(),
        image_url=request.image_url or None,
        action_url=request.action_url or None,
    )


def send_batches(sender: PushSender, payload: PushPayload, tokens: List[str]) -> tuple[int, int, List[str]]:
    """Send sequential batches; returns ``(delivered, failed, tokens_to_prune)``."""
    batch_size = int(NOTIFICATION_SETTINGS["batch_size"])
    permanent = set(NOTIFICATION_SETTINGS["permanent_failure_codes"])  # type: ignore[arg-type]
    delivered = 0
    failed = 0
    to_prune: List[str] = []

    for start in range(0, len(tokens), batch_size):
        batch = tokens[start:start + batch_size]
        try:
            outcome = sender.send_batch(payload, batch)
        except Exception as e:
            failed += len(batch)
            logger.error("Push batch failed", batch_start=start, batch_size=len(batch), error=str(e))
            continue
        delivered += outcome.success_count
        failed += outcome.failure_count
        to_prune.extend(o.token for o in outcome.outcomes if not o.success and o.error_code in permanent)

    return delivered, failed, to_prune


def prune_tokens(session: Session, tokens: List[str]) -> int:
    """Null out permanently invalid tokens; failures are logged, never raised."""
    unique = list(dict.fromkeys(tokens))
    if not unique:
        return 0
    try:
        session.execute(update(AppUser).where(AppUser.token.in_(unique)).values(token=None))
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error("Failed to prune invalid push tokens", tokens=len(unique), error=str(e))
        return 0
    logger.info("Pruned invalid push tokens", tokens=len(unique))
    return len(unique)


def record_history(
    session: Session,
    request: NotificationSendRequest,
    recipients: List[str],
    delivered: int,
    failed: int,
    sent_at: datetime,
) -> Optional[int]:
    entry = NotificationHistory(
        title=request.title,
        message=request.message,
        recipient_type=request.recipient_type.value,
        recipient_uids=recipients,
        sent_by=request.sent_by,
        delivery_count=delivered,
        failure_count=failed,
        read_count=0,
        sent_at=sent_at,
    )
    try:
        session.add(entry)
        session.commit()
        session.refresh(entry)
    except Exception as e:
        session.rollback()
        logger.error("Failed to save notification history", error=str(e))
        return None
    return entry.id


def send_notification(
    session: Session,
    request: NotificationSendRequest,
    sender: Optional[PushSender],
    now: Optional[datetime] = None,
) -> BroadcastResult:
    error = validate_request(request)
    if error:
        return BroadcastResult(success=False, error=error)
    if sender is None:
        return BroadcastResult(success=False, error="Push notifications are not configured")
    if request.recipient_type is RecipientType.SPECIFIC and not request.recipient_uids:
        return BroadcastResult(success=False, error="Please select at least one recipient")

    sent_at = now or utc_now()
    try:
        recipients = resolve_recipients(session, request)
    except Exception as e:
        session.rollback()
        logger.error("Recipient resolution failed", recipient_type=request.recipient_type.value, error=str(e), exc_info=True)
        return BroadcastResult(success=False, error=str(e) or "Failed to send notification")
    if not recipients:
        return BroadcastResult(success=False, error="No recipients found")

    tokens = fetch_tokens(session, recipients)
    payload = build_payload(request, sent_at)
    delivered, failed, to_prune = send_batches(sender, payload, tokens)
    pruned = prune_tokens(session, to_prune)
    history_id = record_history(session, request, recipients, delivered, failed, sent_at)

    log_business_event(
        "notification_broadcast",
        {
            "recipient_type": request.recipient_type.value,
            "recipients": len(recipients),
            "tokens": len(tokens),
            "delivered": delivered,
            "failed": failed,
            "pruned": pruned,
            "history_id": history_id,
        },
        admin=request.sent_by,
    )
    return BroadcastResult(
        success=True,
        delivered=delivered,
        failed=failed,
        total=len(recipients),
        pruned=pruned,
        history_id=history_id,
    )


def get_notifications(session: Session, limit: int = 50, offset: int = 0) -> NotificationList:
    """Broadcast history, newest first."""
    total = session.execute(select(func.count()).select_from(NotificationHistory)).scalar_one()
    rows = session.execute(
        select(NotificationHistory)
        .order_by(NotificationHistory.sent_at.desc(), NotificationHistory.id.desc())
        .offset(offset)
        .limit(limit)
    ).scalars().all()
    return NotificationList(
        items=[NotificationRead.model_validate(row) for row in rows],
        total=int(total),
        limit=limit,
        offset=offset,
    )


__all__ = [
    "validate_request",
    "recipient_query",
    "resolve_recipients",
    "fetch_tokens",
    "build_payload",
    "send_batches",
    "prune_tokens",
    "record_history",
    "send_notification",
    "get_notifications",
]
