"""
Pydantic schemas for push broadcasts.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from ajira_admin.models.db.enums import RecipientType

class NotificationSendRequest(BaseModel):
    """Broadcast request as submitted from the admin notifications form.

    Length rules (title <= 65, message <= 240, non-blank) are enforced by the
    broadcaster so a violation comes back as ``{success: false, error}``
    rather than a 422.
    """
    title: str = ""
    message: str = ""
    recipient_type: RecipientType = RecipientType.ALL
    recipient_uids: Optional[List[str]] = Field(None, description="Required when recipient_type is 'specific'")
    image_url: Optional[str] = None
    action_url: Optional[str] = Field(None, description="Deep link delivered as click_action")
    sent_by: Optional[str] = Field(None, description="Admin identifier recorded in history")

class BroadcastResult(BaseModel):
    success: bool
    error: Optional[str] = None
    delivered: int = 0
    failed: int = 0
    total: int = Field(0, description="Resolved recipients (uids), not tokens")
    pruned: int = Field(0, description="Tokens nulled after a permanent failure")
    history_id: Optional[int] = None

class NotificationRead(BaseModel):
    id: int
    title: str
    message: str
    recipient_type: str
    recipient_uids: Optional[List[str]] = None
    sent_by: Optional[str] = None
    delivery_count: int = 0
    failure_count: int = 0
    read_count: int = 0
    sent_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class NotificationList(BaseModel):
    items: List[NotificationRead] = Field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0
