"""SQLAlchemy models for generated resumes and the skills reference table."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from ajira_admin.database import Base

class GeneratedResume(Base):
    __tablename__ = "generated_resumes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_uid: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    resume_type: Mapped[str | None] = mapped_column(String, nullable=True)
    template: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

class Skill(Base):
    __tablename__ = "skills"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    skill_name: Mapped[str] = mapped_column(String)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
