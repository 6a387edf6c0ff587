from .base import NameValue, MonthlyValue
from .analytics import (
    EarningsAnalytics,
    EarningsMonth,
    RevenueSourceShare,
    PlatformAnalytics,
    DashboardAnalytics,
    CreditAnalytics,
    ReferralAnalytics,
    SubscriptionAnalytics,
    NotificationAnalytics,
    UserAnalytics,
    JobAnalytics,
    CompanyAnalytics,
    ApplicationAnalytics,
    InterviewAnalytics,
    AIChatAnalytics,
)
from .notifications import NotificationSendRequest, BroadcastResult, NotificationRead, NotificationList
from .earnings import SyncResult, AllTimeAdMobEarnings

__all__ = [
    # Base
    "NameValue",
    "MonthlyValue",

    # Analytics
    "EarningsAnalytics",
    "EarningsMonth",
    "RevenueSourceShare",
    "PlatformAnalytics",
    "DashboardAnalytics",
    "CreditAnalytics",
    "ReferralAnalytics",
    "SubscriptionAnalytics",
    "NotificationAnalytics",
    "UserAnalytics",
    "JobAnalytics",
    "CompanyAnalytics",
    "ApplicationAnalytics",
    "InterviewAnalytics",
    "AIChatAnalytics",

    # Notifications
    "NotificationSendRequest",
    "BroadcastResult",
    "NotificationRead",
    "NotificationList",

    # Earnings
    "SyncResult",
    "AllTimeAdMobEarnings",
]
