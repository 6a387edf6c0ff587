"""SQLAlchemy model for push broadcast history (one row per campaign)."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from ajira_admin.database import Base

class NotificationHistory(Base):
    __tablename__ = "notification_history"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    recipient_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    recipient_uids: Mapped[list | None] = mapped_column(JSON, nullable=True)
    sent_by: Mapped[str | None] = mapped_column(String, nullable=True)
    delivery_count: Mapped[int] = mapped_column(Integer, default=0)
    failure_count: Mapped[int] = mapped_column(Integer, default=0)
    # Mutated later by read receipts, outside this service
    read_count: Mapped[int] = mapped_column(Integer, default=0)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
