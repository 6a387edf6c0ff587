"""SQLAlchemy models for money-like records: earnings, credits, referrals, subscriptions.

``earnings`` is the only table written by this service (AdMob sync upserts one
row per calendar day); the rest are read-only here.
"""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Numeric, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from ajira_admin.database import Base
from .enums import RevenueSource

class Earning(Base):
    __tablename__ = "earnings"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    revenue_source: Mapped[str] = mapped_column(String, default=RevenueSource.OTHER.value, index=True)
    amount: Mapped[float] = mapped_column(Numeric(14, 6), default=0)
    currency: Mapped[str] = mapped_column(String, default="USD")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    # {impressions, clicks, ctr, ecpm, last_synced}; "metadata" is reserved on declarative classes
    meta: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

class CreditTransaction(Base):
    __tablename__ = "credit_transactions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # Positive = credits added, negative = credits spent
    amount: Mapped[int] = mapped_column(Integer, default=0)
    transaction_type: Mapped[str | None] = mapped_column(String, nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

class Referral(Base):
    __tablename__ = "referrals"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    referrer_uid: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    referee_uid: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True)
    referrer_credits_awarded: Mapped[int] = mapped_column(Integer, default=0)
    referee_credits_awarded: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

class SubscriptionHistory(Base):
    __tablename__ = "subscription_history"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    company_uid: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    plan: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True)
    amount: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
