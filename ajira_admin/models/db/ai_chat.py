"""SQLAlchemy models for the in-app AI career assistant's chat logs."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from ajira_admin.database import Base

class AIChatConversation(Base):
    __tablename__ = "ai_chat_conversations"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_uid: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    # Client-generated id; messages reference this, not the row id
    conversation_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

class AIChatMessage(Base):
    __tablename__ = "ai_chat_messages"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    conversation_id: Mapped[str] = mapped_column(String, index=True)
    user_uid: Mapped[str | None] = mapped_column(String, nullable=True)
    # "user" or "assistant"
    role: Mapped[str] = mapped_column(String)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

class AIChatMessageFeedback(Base):
    __tablename__ = "ai_chat_message_feedback"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    message_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    user_uid: Mapped[str | None] = mapped_column(String, nullable=True)
    # "like" or "dislike"
    feedback_type: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
