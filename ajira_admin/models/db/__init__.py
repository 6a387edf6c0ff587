from .users import AppUser
from .companies import Company
from .jobs import LatestJob, JobApplication, Interview
from .finance import Earning, CreditTransaction, Referral, SubscriptionHistory
from .content import GeneratedResume, Skill
from .notifications import NotificationHistory
from .ai_chat import AIChatConversation, AIChatMessage, AIChatMessageFeedback
from .enums import RevenueSource, RecipientType

__all__ = [
    "AppUser",
    "Company",
    "LatestJob",
    "JobApplication",
    "Interview",
    "Earning",
    "CreditTransaction",
    "Referral",
    "SubscriptionHistory",
    "GeneratedResume",
    "Skill",
    "NotificationHistory",
    "AIChatConversation",
    "AIChatMessage",
    "AIChatMessageFeedback",
    "RevenueSource",
    "RecipientType",
]
