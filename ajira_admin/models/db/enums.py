"""Central Enum definitions for dashboard domain values.

The hosted tables store these as plain strings; the enums keep the literals
in one place for models, schemas and service logic.
"""
from __future__ import annotations
import enum


class RevenueSource(str, enum.Enum):
    ADMOB = "admob"
    SUBSCRIPTION = "subscription"
    FEATURED_JOB = "featured_job"
    CREDITS_PURCHASE = "credits_purchase"
    OTHER = "other"


class RecipientType(str, enum.Enum):
    ALL = "all"
    SEEKERS = "seekers"
    COMPANIES = "companies"
    SPECIFIC = "specific"


class UserRole(str, enum.Enum):
    SEEKER = "seeker"
    EMPLOYER = "employer"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReferralStatus(str, enum.Enum):
    PENDING = "pending"
    REWARDED = "rewarded"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class ChatRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatFeedback(str, enum.Enum):
    LIKE = "like"
    DISLIKE = "dislike"


__all__ = [
    "RevenueSource",
    "RecipientType",
    "UserRole",
    "ApplicationStatus",
    "InterviewStatus",
    "ReferralStatus",
    "SubscriptionStatus",
    "ChatRole",
    "ChatFeedback",
]
