"""
Pydantic schemas for the aggregated analytics payloads.

Every model defaults to zeros / empty lists, so ``Model()`` is the
"empty dashboard" returned when an aggregation fails.
"""
from typing import Any, Dict, List
from pydantic import BaseModel, Field
from .base import NameValue, MonthlyValue

# --------------------------------------------------------------------------- #
# Earnings
# --------------------------------------------------------------------------- #

class EarningsMonth(BaseModel):
    date: str = Field(description="Month label, e.g. 'Jan 2025'")
    earnings: float = 0
    admob: float = 0
    subscriptions: float = 0
    other: float = 0

class RevenueSourceShare(BaseModel):
    name: str
    amount: float = 0
    percentage: float = 0

class EarningsAnalytics(BaseModel):
    total_earnings: float = 0
    earnings_last_30_days: float = 0
    growth_rate: float = Field(0, description="Last six months vs the six months before, percent")
    revenue_source_distribution: List[NameValue] = Field(default_factory=list)
    total_admob_revenue: float = 0
    admob_last_30_days: float = 0
    total_ad_impressions: int = 0
    total_ad_clicks: int = 0
    avg_ctr: float = 0
    avg_ecpm: float = 0
    subscription_earnings: float = 0
    featured_job_earnings: float = 0
    credits_purchase_earnings: float = 0
    earnings_growth: List[EarningsMonth] = Field(default_factory=list)
    top_revenue_sources: List[RevenueSourceShare] = Field(default_factory=list)
    admob_live: bool = Field(False, description="True when AdMob totals came from the live report")

# --------------------------------------------------------------------------- #
# Platform
# --------------------------------------------------------------------------- #

class PlatformOverview(BaseModel):
    total_users: int = 0
    active_users: int = 0
    verified_users: int = 0
    total_companies: int = 0
    verified_companies: int = 0
    active_recruiters: int = 0
    total_jobs: int = 0
    active_jobs: int = 0
    pending_jobs: int = 0
    featured_jobs: int = 0
    total_applications: int = 0
    shortlisted_applications: int = 0
    total_interviews: int = 0
    scheduled_interviews: int = 0
    total_revenue: float = 0
    revenue_last_month: float = 0
    active_subscriptions: int = 0
    paid_subscriptions: int = 0
    user_growth_rate: float = 0
    job_growth_rate: float = 0
    total_resumes_generated: int = 0
    resumes_last_30_days: int = 0

class PlatformUsers(BaseModel):
    total: int = 0
    active: int = 0
    blocked: int = 0
    verified: int = 0
    by_role: List[NameValue] = Field(default_factory=list)
    new_last_30_days: int = 0
    top_locations: List[NameValue] = Field(default_factory=list)
    top_skills: List[NameValue] = Field(default_factory=list)

class PlatformJobs(BaseModel):
    total: int = 0
    active: int = 0
    pending: int = 0
    rejected: int = 0
    featured: int = 0
    by_category: List[NameValue] = Field(default_factory=list)
    new_last_30_days: int = 0

class PlatformApplications(BaseModel):
    total: int = 0
    shortlisted: int = 0
    rejected: int = 0
    pending: int = 0
    avg_ai_rating: float = 0

class PlatformFinance(BaseModel):
    total_revenue: float = 0
    revenue_last_month: float = Field(0, description="Current calendar month, live AdMob when available")
    avg_monthly_revenue: float = 0
    total_credits_issued: int = 0
    total_credits_used: int = 0
    net_credits: int = 0
    total_referrals: int = 0
    successful_referrals: int = 0
    referral_credits_awarded: int = 0
    admob_live: bool = False

class PlatformEngagement(BaseModel):
    total_interviews: int = 0
    scheduled_interviews: int = 0
    completed_interviews: int = 0
    application_rate: float = Field(0, description="Applications per job")
    interview_rate: float = Field(0, description="Interviews per 100 applications")
    total_resumes_generated: int = 0
    resumes_last_30_days: int = 0

class PlatformResumes(BaseModel):
    total: int = 0
    last_30_days: int = 0
    by_type: List[NameValue] = Field(default_factory=list)
    by_template: List[NameValue] = Field(default_factory=list)

class PlatformMonth(BaseModel):
    month: str
    users: int = 0
    jobs: int = 0
    applications: int = 0

class PlatformAnalytics(BaseModel):
    overview: PlatformOverview = Field(default_factory=PlatformOverview)
    users: PlatformUsers = Field(default_factory=PlatformUsers)
    jobs: PlatformJobs = Field(default_factory=PlatformJobs)
    applications: PlatformApplications = Field(default_factory=PlatformApplications)
    finance: PlatformFinance = Field(default_factory=PlatformFinance)
    engagement: PlatformEngagement = Field(default_factory=PlatformEngagement)
    resumes: PlatformResumes = Field(default_factory=PlatformResumes)
    monthly_growth: List[PlatformMonth] = Field(default_factory=list)

# --------------------------------------------------------------------------- #
# Dashboard
# --------------------------------------------------------------------------- #

class DashboardOverview(BaseModel):
    total_users: int = 0
    total_companies: int = 0
    total_jobs: int = 0
    total_applications: int = 0

class DashboardToday(BaseModel):
    new_users: int = 0
    new_jobs: int = 0
    new_applications: int = 0
    earnings: float = 0

class DailyRevenue(BaseModel):
    date: str = Field(description="YYYY-MM-DD (UTC)")
    revenue: float = 0

class DashboardRevenue(BaseModel):
    total: float = Field(0, description="Stored earnings over the last 30 days")
    growth: float = 0
    chart_data: List[DailyRevenue] = Field(default_factory=list)

class ActivityGrowth(BaseModel):
    count: int = 0
    growth: float = 0

class DashboardEarnings(BaseModel):
    total_7d: float = 0
    by_source: Dict[str, float] = Field(default_factory=dict)
    today: float = 0
    all_time_admob: float = 0

class DashboardPending(BaseModel):
    jobs: int = 0
    blocked_users: int = 0
    unverified_companies: int = 0

class DashboardRecent(BaseModel):
    users: List[Dict[str, Any]] = Field(default_factory=list)
    jobs: List[Dict[str, Any]] = Field(default_factory=list)
    applications: List[Dict[str, Any]] = Field(default_factory=list)

class DashboardTop(BaseModel):
    companies: List[Dict[str, Any]] = Field(default_factory=list)
    skills: List[Dict[str, Any]] = Field(default_factory=list)

class DashboardAnalytics(BaseModel):
    overview: DashboardOverview = Field(default_factory=DashboardOverview)
    today: DashboardToday = Field(default_factory=DashboardToday)
    revenue: DashboardRevenue = Field(default_factory=DashboardRevenue)
    users: ActivityGrowth = Field(default_factory=ActivityGrowth, description="Active users (reward claimed in the last 3 days)")
    jobs: ActivityGrowth = Field(default_factory=ActivityGrowth, description="Jobs posted in the last 30 days")
    applications: ActivityGrowth = Field(default_factory=ActivityGrowth, description="Applications in the last 30 days")
    earnings: DashboardEarnings = Field(default_factory=DashboardEarnings)
    pending: DashboardPending = Field(default_factory=DashboardPending)
    recent: DashboardRecent = Field(default_factory=DashboardRecent)
    top: DashboardTop = Field(default_factory=DashboardTop)

# --------------------------------------------------------------------------- #
# Credits / referrals / subscriptions
# --------------------------------------------------------------------------- #

class CreditFlowMonth(BaseModel):
    date: str
    credits_added: int = 0
    credits_used: int = 0

class CreditAnalytics(BaseModel):
    total_transactions: int = 0
    credits_added: int = 0
    credits_used: int = 0
    net_credits: int = 0
    type_distribution: List[NameValue] = Field(default_factory=list)
    volume_history: List[MonthlyValue] = Field(default_factory=list)
    flow_history: List[CreditFlowMonth] = Field(default_factory=list)
    top_usage_categories: List[NameValue] = Field(default_factory=list)

class TopReferrer(BaseModel):
    uid: str
    count: int = 0
    total_credits: int = 0
    successful_referrals: int = 0
    name: str | None = None
    email: str | None = None

class ReferralAnalytics(BaseModel):
    total_referrals: int = 0
    successful_referrals: int = 0
    pending_referrals: int = 0
    total_credits_awarded: int = 0
    total_referrer_credits: int = 0
    total_referee_credits: int = 0
    status_distribution: List[NameValue] = Field(default_factory=list)
    referrals_history: List[MonthlyValue] = Field(default_factory=list)
    top_referrers: List[TopReferrer] = Field(default_factory=list)

class TopSubscriber(BaseModel):
    uid: str
    count: int = 0
    total_spent: float = 0
    active_subscriptions: int = 0
    current_plan: str = "Free"
    name: str | None = None
    email: str | None = None

class SubscriptionAnalytics(BaseModel):
    total_subscriptions: int = 0
    active_subscriptions: int = 0
    cancelled_subscriptions: int = 0
    total_revenue: float = 0
    active_revenue: float = Field(0, description="Active subscriptions whose end date is still ahead")
    plan_distribution: List[NameValue] = Field(default_factory=list)
    status_distribution: List[NameValue] = Field(default_factory=list)
    subscriptions_history: List[MonthlyValue] = Field(default_factory=list)
    revenue_history: List[MonthlyValue] = Field(default_factory=list)
    top_subscribers: List[TopSubscriber] = Field(default_factory=list)

# --------------------------------------------------------------------------- #
# Notifications
# --------------------------------------------------------------------------- #

class NotificationOverview(BaseModel):
    total_notifications: int = 0
    total_delivered: int = 0
    total_read: int = 0
    notifications_last_30_days: int = 0
    notifications_last_7_days: int = 0
    delivered_last_30_days: int = 0
    avg_recipients_per_notification: float = 0

class NotificationEngagement(BaseModel):
    delivery_rate: float = Field(0, description="Deliveries per notification, percent")
    read_rate: float = Field(0, description="Reads per delivery, percent")
    total_delivered: int = 0
    total_read: int = 0

class NotificationMonth(BaseModel):
    month: str
    sent: int = 0
    delivered: int = 0
    read: int = 0

class SenderActivity(BaseModel):
    sender: str
    count: int = 0
    delivered: int = 0
    read: int = 0

class NotificationAnalytics(BaseModel):
    overview: NotificationOverview = Field(default_factory=NotificationOverview)
    engagement: NotificationEngagement = Field(default_factory=NotificationEngagement)
    recipient_types: List[NameValue] = Field(default_factory=list)
    growth: List[NotificationMonth] = Field(default_factory=list)
    top_senders: List[SenderActivity] = Field(default_factory=list)

# --------------------------------------------------------------------------- #
# Users, jobs, companies, applications, interviews
# --------------------------------------------------------------------------- #

class UserAnalytics(BaseModel):
    total_users: int = 0
    active_users: int = 0
    blocked_users: int = 0
    verified_users: int = 0
    role_distribution: List[NameValue] = Field(default_factory=list)
    gender_distribution: List[NameValue] = Field(default_factory=list)
    account_type_distribution: List[NameValue] = Field(default_factory=list)
    growth_history: List[MonthlyValue] = Field(default_factory=list)
    top_skills: List[NameValue] = Field(default_factory=list)
    location_distribution: List[NameValue] = Field(default_factory=list)
    age_distribution: List[NameValue] = Field(default_factory=list, description="Fixed bracket order, Unknown last")

class JobAnalytics(BaseModel):
    total_jobs: int = 0
    active_jobs: int = Field(0, description="No deadline, or deadline still ahead")
    featured_jobs: int = 0
    pending_jobs: int = 0
    status_distribution: List[NameValue] = Field(default_factory=list)
    category_distribution: List[NameValue] = Field(default_factory=list)
    type_distribution: List[NameValue] = Field(default_factory=list)
    location_distribution: List[NameValue] = Field(default_factory=list)
    growth_history: List[MonthlyValue] = Field(default_factory=list)

class CompanyAnalytics(BaseModel):
    total_companies: int = 0
    verified_companies: int = 0
    blocked_companies: int = 0
    active_job_posters: int = 0
    industry_distribution: List[NameValue] = Field(default_factory=list)
    size_distribution: List[NameValue] = Field(default_factory=list)
    location_distribution: List[NameValue] = Field(default_factory=list)
    subscription_distribution: List[NameValue] = Field(default_factory=list)
    growth_history: List[MonthlyValue] = Field(default_factory=list)

class ApplicationAnalytics(BaseModel):
    total_applications: int = 0
    shortlisted: int = 0
    rejected: int = 0
    pending: int = 0
    avg_rating: float = Field(0, description="Mean over rated applications only")
    status_distribution: List[NameValue] = Field(default_factory=list)
    rating_distribution: List[NameValue] = Field(default_factory=list)
    growth_history: List[MonthlyValue] = Field(default_factory=list)

class InterviewAnalytics(BaseModel):
    total_interviews: int = 0
    upcoming_interviews: int = 0
    past_interviews: int = 0
    scheduled_today: int = 0
    status_distribution: List[NameValue] = Field(default_factory=list)
    type_distribution: List[NameValue] = Field(default_factory=list)
    growth_history: List[MonthlyValue] = Field(default_factory=list)

# --------------------------------------------------------------------------- #
# AI chat
# --------------------------------------------------------------------------- #

class AIChatOverview(BaseModel):
    total_conversations: int = 0
    total_messages: int = 0
    unique_users: int = 0
    active_conversations: int = Field(0, description="Conversations with a message in the last 7 days")
    conversations_last_30_days: int = 0
    messages_last_30_days: int = 0
    conversations_last_7_days: int = 0
    avg_messages_per_conversation: float = 0
    avg_message_length: int = Field(0, description="Characters per user message")
    avg_conversation_duration: int = Field(0, description="Minutes between first and last message")

class AIChatMessages(BaseModel):
    total: int = 0
    user_messages: int = 0
    assistant_messages: int = 0
    avg_per_conversation: float = 0

class AIChatFeedback(BaseModel):
    total: int = 0
    likes: int = 0
    dislikes: int = 0
    feedback_rate: float = Field(0, description="Feedback per assistant message, percent")
    satisfaction_rate: float = Field(0, description="Likes per feedback, percent")

class AIChatMonth(BaseModel):
    month: str
    conversations: int = 0
    messages: int = 0

class ChatUser(BaseModel):
    uid: str
    conversations: int = 0

class AIChatAnalytics(BaseModel):
    overview: AIChatOverview = Field(default_factory=AIChatOverview)
    messages: AIChatMessages = Field(default_factory=AIChatMessages)
    feedback: AIChatFeedback = Field(default_factory=AIChatFeedback)
    growth: List[AIChatMonth] = Field(default_factory=list)
    top_users: List[ChatUser] = Field(default_factory=list)
