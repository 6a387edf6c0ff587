"""
Push notification endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
import time
from ajira_admin.api.deps import get_db, get_pagination_params, get_push_sender, require_admin
from ajira_admin.integrations.push import PushSender
from ajira_admin.models.schemas import BroadcastResult, NotificationList, NotificationSendRequest
from ajira_admin.services.notification_broadcaster import get_notifications, send_notification
from ajira_admin.utils import get_logger, log_performance

router = APIRouter(dependencies=[Depends(require_admin)])
logger = get_logger(__name__)

@router.post(
    "/send",
    response_model=BroadcastResult,
    summary="Broadcast a push notification"
)
def send(
    payload: NotificationSendRequest,
    request: Request,
    db: Session = Depends(get_db),
    sender: Optional[PushSender] = Depends(get_push_sender),
):
    """Send to all users, seekers, companies or a specific uid list.

    Validation problems come back as ``{"success": false, "error": ...}`` with
    status 200, the same shape the dashboard form already renders.
    """
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    logger.info(
        "Notification broadcast requested",
        recipient_type=payload.recipient_type.value,
        specific_recipients=len(payload.recipient_uids or []),
        sent_by=payload.sent_by,
        request_id=request_id
    )

    try:
        result = send_notification(db, payload, sender)
    except Exception as e:
        logger.error(
            "Notification broadcast crashed",
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send notification"
        )

    duration_ms = (time.time() - start_time) * 1000
    log_performance(
        operation="send_notification",
        duration_ms=duration_ms,
        additional_data={"delivered": result.delivered, "failed": result.failed, "total": result.total}
    )
    if not result.success:
        logger.warning("Notification broadcast rejected", error=result.error, request_id=request_id)
    return result

@router.get(
    "/history",
    response_model=NotificationList,
    summary="Broadcast history"
)
def history(
    request: Request,
    pagination: dict = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    """Previously sent broadcasts, newest first."""
    request_id = request.headers.get("X-Request-ID", "unknown")
    try:
        return get_notifications(db, limit=pagination["limit"], offset=pagination["offset"])
    except Exception as e:
        logger.error(
            "Failed to list notification history",
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve notification history"
        )
