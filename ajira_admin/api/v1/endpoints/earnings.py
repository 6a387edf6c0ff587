"""
AdMob earnings endpoints: live all-time total and the daily sync job.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
import time
from ajira_admin.api.deps import get_admob_client, get_db, require_admin
from ajira_admin.integrations.admob import AdMobClient
from ajira_admin.models.schemas import AllTimeAdMobEarnings, SyncResult
from ajira_admin.services.admob_sync import sync_admob_data
from ajira_admin.services.earnings_analytics import get_all_time_admob_earnings
from ajira_admin.utils import get_logger, log_performance

router = APIRouter(dependencies=[Depends(require_admin)])
logger = get_logger(__name__)

@router.get(
    "/admob/all-time",
    response_model=AllTimeAdMobEarnings,
    summary="Live all-time AdMob earnings"
)
async def admob_all_time(
    request: Request,
    admob_client: Optional[AdMobClient] = Depends(get_admob_client),
):
    """AdMob total over the lookback window; ``live`` is false when the report was unavailable."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    result = await get_all_time_admob_earnings(admob_client)

    duration_ms = (time.time() - start_time) * 1000
    log_performance(
        operation="get_all_time_admob_earnings",
        duration_ms=duration_ms,
        additional_data={"live": result.live}
    )
    logger.info(
        "All-time AdMob earnings fetched",
        total=result.total,
        live=result.live,
        request_id=request_id
    )
    return result

@router.post(
    "/admob/sync",
    response_model=SyncResult,
    summary="Sync AdMob daily earnings into the earnings table"
)
async def admob_sync(
    request: Request,
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    admob_client: Optional[AdMobClient] = Depends(get_admob_client),
):
    """Upsert one earnings row per AdMob report day for the last ``days`` days."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    logger.info("AdMob sync requested", days=days, request_id=request_id)

    try:
        result = await sync_admob_data(db, days, admob_client)
    except Exception as e:
        logger.error(
            "AdMob sync crashed",
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sync AdMob data"
        )

    duration_ms = (time.time() - start_time) * 1000
    log_performance(
        operation="admob_sync",
        duration_ms=duration_ms,
        additional_data={"days": days, "success": result.success, "count": result.count}
    )
    if not result.success:
        logger.warning("AdMob sync failed", error=result.error, request_id=request_id)
    return result
