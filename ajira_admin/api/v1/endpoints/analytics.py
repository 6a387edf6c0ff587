"""
Analytics endpoints for the admin dashboard pages.

Aggregators never raise for store or AdMob failures (they log and return the
zero-valued model), so a 500 here means something unexpected broke.
"""
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Request
from ajira_admin.api.deps import get_admob_client, get_session_factory, require_admin
from ajira_admin.integrations.admob import AdMobClient
from ajira_admin.models.schemas import (
    AIChatAnalytics,
    ApplicationAnalytics,
    CompanyAnalytics,
    CreditAnalytics,
    DashboardAnalytics,
    EarningsAnalytics,
    InterviewAnalytics,
    JobAnalytics,
    NotificationAnalytics,
    PlatformAnalytics,
    ReferralAnalytics,
    SubscriptionAnalytics,
    UserAnalytics,
)
from ajira_admin.services.ai_chat_analytics import get_ai_chat_analytics
from ajira_admin.services.bulk_fetcher import SessionFactory
from ajira_admin.services.dashboard_analytics import get_dashboard_analytics
from ajira_admin.services.earnings_analytics import get_earnings_analytics
from ajira_admin.services.entity_analytics import (
    get_application_analytics,
    get_company_analytics,
    get_interview_analytics,
    get_job_analytics,
    get_user_analytics,
)
from ajira_admin.services.finance_analytics import (
    get_credit_analytics,
    get_referral_analytics,
    get_subscription_analytics,
)
from ajira_admin.services.notification_analytics import get_notification_analytics
from ajira_admin.services.platform_analytics import get_platform_analytics
from ajira_admin.utils import get_logger
from ajira_admin.utils.observability import request_id_of, timed

router = APIRouter(dependencies=[Depends(require_admin)])
logger = get_logger(__name__)


def _failed(operation: str, error: Exception, request_id: str) -> HTTPException:
    logger.error(
        "Analytics computation failed",
        operation=operation,
        error=str(error),
        request_id=request_id,
        exc_info=True,
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to compute analytics",
    )


@router.get("/earnings", response_model=EarningsAnalytics, summary="Earnings analytics")
async def earnings_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
    admob_client: Optional[AdMobClient] = Depends(get_admob_client),
):
    """Revenue totals, AdMob performance, source mix and six-month history."""
    request_id = request_id_of(request.headers)
    try:
        with timed("get_earnings_analytics", request_id=request_id) as perf:
            result = await get_earnings_analytics(session_factory, admob_client)
            perf["admob_live"] = result.admob_live
    except Exception as e:
        raise _failed("get_earnings_analytics", e, request_id)
    return result


@router.get("/platform", response_model=PlatformAnalytics, summary="Platform analytics")
async def platform_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
    admob_client: Optional[AdMobClient] = Depends(get_admob_client),
):
    """Cross-table platform overview: users, jobs, applications, finance, engagement."""
    request_id = request_id_of(request.headers)
    try:
        with timed("get_platform_analytics", request_id=request_id) as perf:
            result = await get_platform_analytics(session_factory, admob_client)
            perf["total_users"] = result.overview.total_users
    except Exception as e:
        raise _failed("get_platform_analytics", e, request_id)
    return result


@router.get("/dashboard", response_model=DashboardAnalytics, summary="Dashboard analytics")
async def dashboard_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
    admob_client: Optional[AdMobClient] = Depends(get_admob_client),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_dashboard_analytics", request_id=request_id):
            result = await get_dashboard_analytics(session_factory, admob_client)
    except Exception as e:
        raise _failed("get_dashboard_analytics", e, request_id)
    return result


@router.get("/credits", response_model=CreditAnalytics, summary="Credit analytics")
async def credit_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_credit_analytics", request_id=request_id) as perf:
            result = await get_credit_analytics(session_factory)
            perf["transactions"] = result.total_transactions
    except Exception as e:
        raise _failed("get_credit_analytics", e, request_id)
    return result


@router.get("/referrals", response_model=ReferralAnalytics, summary="Referral analytics")
async def referral_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_referral_analytics", request_id=request_id) as perf:
            result = await get_referral_analytics(session_factory)
            perf["referrals"] = result.total_referrals
    except Exception as e:
        raise _failed("get_referral_analytics", e, request_id)
    return result


@router.get("/subscriptions", response_model=SubscriptionAnalytics, summary="Subscription analytics")
async def subscription_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_subscription_analytics", request_id=request_id) as perf:
            result = await get_subscription_analytics(session_factory)
            perf["subscriptions"] = result.total_subscriptions
    except Exception as e:
        raise _failed("get_subscription_analytics", e, request_id)
    return result


@router.get("/notifications", response_model=NotificationAnalytics, summary="Notification analytics")
async def notification_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_notification_analytics", request_id=request_id) as perf:
            result = await get_notification_analytics(session_factory)
            perf["notifications"] = result.overview.total_notifications
    except Exception as e:
        raise _failed("get_notification_analytics", e, request_id)
    return result


@router.get("/users", response_model=UserAnalytics, summary="User analytics")
async def user_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    """Account status, demographics, skills, locations and registration history."""
    request_id = request_id_of(request.headers)
    try:
        with timed("get_user_analytics", request_id=request_id) as perf:
            result = await get_user_analytics(session_factory)
            perf["users"] = result.total_users
    except Exception as e:
        raise _failed("get_user_analytics", e, request_id)
    return result


@router.get("/jobs", response_model=JobAnalytics, summary="Job analytics")
async def job_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_job_analytics", request_id=request_id) as perf:
            result = await get_job_analytics(session_factory)
            perf["jobs"] = result.total_jobs
    except Exception as e:
        raise _failed("get_job_analytics", e, request_id)
    return result


@router.get("/companies", response_model=CompanyAnalytics, summary="Company analytics")
async def company_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_company_analytics", request_id=request_id) as perf:
            result = await get_company_analytics(session_factory)
            perf["companies"] = result.total_companies
    except Exception as e:
        raise _failed("get_company_analytics", e, request_id)
    return result


@router.get("/applications", response_model=ApplicationAnalytics, summary="Application analytics")
async def application_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_application_analytics", request_id=request_id) as perf:
            result = await get_application_analytics(session_factory)
            perf["applications"] = result.total_applications
    except Exception as e:
        raise _failed("get_application_analytics", e, request_id)
    return result


@router.get("/interviews", response_model=InterviewAnalytics, summary="Interview analytics")
async def interview_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    request_id = request_id_of(request.headers)
    try:
        with timed("get_interview_analytics", request_id=request_id) as perf:
            result = await get_interview_analytics(session_factory)
            perf["interviews"] = result.total_interviews
    except Exception as e:
        raise _failed("get_interview_analytics", e, request_id)
    return result


@router.get("/ai-chat", response_model=AIChatAnalytics, summary="AI assistant analytics")
async def ai_chat_analytics(
    request: Request,
    session_factory: SessionFactory = Depends(get_session_factory),
):
    """Assistant conversation volume, message mix, answer feedback and top users."""
    request_id = request_id_of(request.headers)
    try:
        with timed("get_ai_chat_analytics", request_id=request_id) as perf:
            result = await get_ai_chat_analytics(session_factory)
            perf["conversations"] = result.overview.total_conversations
    except Exception as e:
        raise _failed("get_ai_chat_analytics", e, request_id)
    return result
