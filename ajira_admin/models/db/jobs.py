"""SQLAlchemy models for job postings, applications and interviews."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Boolean, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from ajira_admin.database import Base

class LatestJob(Base):
    __tablename__ = "latest_jobs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    company_name: Mapped[str | None] = mapped_column(String, nullable=True)
    # The posting timestamp column is literally named "Time" in the hosted schema
    posted_at: Mapped[datetime | None] = mapped_column("Time", DateTime(timezone=True), nullable=True, index=True)
    # Moderation flags are 'yes'/'no' strings
    approved: Mapped[str | None] = mapped_column(String, nullable=True)
    pending: Mapped[str | None] = mapped_column(String, nullable=True)
    rejected: Mapped[str | None] = mapped_column(String, nullable=True)
    approval_status: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    type: Mapped[str | None] = mapped_column(String, nullable=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    # Applications close at the deadline; no deadline means the posting stays open
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

class JobApplication(Base):
    __tablename__ = "job_applications"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    job_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True)
    ai_rating: Mapped[float | None] = mapped_column(Numeric(4, 2), nullable=True)
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

class Interview(Base):
    __tablename__ = "interviews"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True)
    interview_type: Mapped[str | None] = mapped_column(String, nullable=True)
    interview_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
