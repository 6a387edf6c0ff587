"""Revenue reconciliation rules shared by every earnings-facing aggregator.

Stored ``admob`` earnings rows are a cache of the AdMob report: for all-time
and this-month totals the live API figure wins whenever it is positive, and
the stored sum is used otherwise. Arbitrary windows (last 30 days, last 7
days, previous period) always use the stored sums.

Everything except ``resolve_admob_total`` is pure and works on plain row
mappings as returned by the bulk fetcher.
"""
from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ajira_admin.integrations.admob import AdMobError, AdMobReportRow
from ajira_admin.models.db.enums import RevenueSource
from ajira_admin.utils import get_logger
from ajira_admin.utils.metrics import safe_div, to_number
from ajira_admin.utils.time import in_window, to_utc

logger = get_logger(__name__)

ADMOB = RevenueSource.ADMOB.value


@dataclass(frozen=True)
class RevenueTotals:
    total_admob: float
    other_total: float
    total_revenue: float
    admob_from_api: bool = False


@dataclass(frozen=True)
class AdPerformance:
    revenue: float
    impressions: int
    clicks: int
    ctr: float
    ecpm: float


class ZeroBaseline(str, enum.Enum):
    """How a growth rate is reported when the previous window is zero."""

    NO_GROWTH = "no_growth"      # 0
    FULL_GROWTH = "full_growth"  # 100 when the current window is positive


def is_admob(row: Mapping[str, Any]) -> bool:
    return row.get("revenue_source") == ADMOB


def split_by_source(rows: Iterable[Mapping[str, Any]]) -> tuple[float, float]:
    """``(stored admob sum, everything-else sum)``."""
    admob = 0.0
    other = 0.0
    for row in rows:
        amount = to_number(row.get("amount"))
        if is_admob(row):
            admob += amount
        else:
            other += amount
    return admob, other


def reconcile_revenue(rows: Iterable[Mapping[str, Any]], api_total: float = 0.0) -> RevenueTotals:
    """Merge a live AdMob total with stored earnings, preferring the API when positive."""
    stored_admob, other = split_by_source(rows)
    from_api = api_total > 0
    total_admob = api_total if from_api else stored_admob
    return RevenueTotals(
        total_admob=total_admob,
        other_total=other,
        total_revenue=total_admob + other,
        admob_from_api=from_api,
    )


def rows_in_window(
    rows: Iterable[Mapping[str, Any]],
    start: Optional[datetime],
    end: Optional[datetime] = None,
    *,
    field_name: str = "earned_at",
    inclusive_end: bool = False,
) -> list[Mapping[str, Any]]:
    return [
        row for row in rows
        if in_window(to_utc(row.get(field_name)), start, end, inclusive_end=inclusive_end)
    ]


def window_revenue(
    rows: Iterable[Mapping[str, Any]],
    start: Optional[datetime],
    end: Optional[datetime] = None,
) -> RevenueTotals:
    """Same split restricted to ``[start, end)``; always the stored sums."""
    return reconcile_revenue(rows_in_window(rows, start, end), api_total=0.0)


def ctr(clicks: float, impressions: float) -> float:
    return safe_div(clicks, impressions) * 100


def ecpm(revenue: float, impressions: float) -> float:
    return safe_div(revenue, impressions) * 1000


def parse_metadata(raw: Any) -> dict[str, Any]:
    """Earnings metadata may be stored as a dict or as a JSON string."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def ad_performance(rows: Iterable[Mapping[str, Any]]) -> AdPerformance:
    """Impressions / clicks from metadata plus CTR and eCPM over stored AdMob rows."""
    revenue = 0.0
    impressions = 0
    clicks = 0
    for row in rows:
        if not is_admob(row):
            continue
        meta = parse_metadata(row.get("meta", row.get("metadata")))
        revenue += to_number(row.get("amount"))
        impressions += int(to_number(meta.get("impressions")))
        clicks += int(to_number(meta.get("clicks")))
    return AdPerformance(
        revenue=revenue,
        impressions=impressions,
        clicks=clicks,
        ctr=ctr(clicks, impressions),
        ecpm=ecpm(revenue, impressions),
    )


def growth_rate(current: float, previous: float, zero_baseline: ZeroBaseline = ZeroBaseline.NO_GROWTH) -> float:
    """Percentage change from ``previous`` to ``current``."""
    if previous == 0:
        if zero_baseline is ZeroBaseline.FULL_GROWTH and current > 0:
            return 100.0
        return 0.0
    return (current - previous) / previous * 100


class ReportSource(Protocol):
    async def fetch_report(self, start_date: date, end_date: date) -> Sequence[AdMobReportRow]:
        ...


@dataclass
class AdMobOutcome:
    success: bool
    rows: list[AdMobReportRow] = field(default_factory=list)
    error_code: str | None = None
    error_message: str | None = None

    @property
    def live_total(self) -> float:
        if not self.success:
            return 0.0
        return sum(row.earnings for row in self.rows)


async def resolve_admob_total(client: Optional[ReportSource], start_date: date, end_date: date) -> AdMobOutcome:
    """Fetch the live AdMob report, converting every failure to a zero-total outcome."""
    if client is None:
        return AdMobOutcome(success=False, error_code="not_configured", error_message="AdMob credentials missing")
    try:
        rows = list(await client.fetch_report(start_date, end_date))
    except AdMobError as e:
        logger.error(
            "AdMob report unavailable, falling back to stored earnings",
            error=str(e),
            error_type=type(e).__name__,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )
        return AdMobOutcome(success=False, error_code="admob_error", error_message=str(e))
    except Exception as e:  # broad: upstream failures never abort analytics
        logger.error(
            "Unexpected AdMob failure, falling back to stored earnings",
            error=str(e),
            exc_info=True,
        )
        return AdMobOutcome(success=False, error_code="unexpected_error", error_message=str(e))
    return AdMobOutcome(success=True, rows=rows)


__all__ = [
    "RevenueTotals",
    "AdPerformance",
    "ZeroBaseline",
    "AdMobOutcome",
    "is_admob",
    "split_by_source",
    "reconcile_revenue",
    "rows_in_window",
    "window_revenue",
    "ctr",
    "ecpm",
    "parse_metadata",
    "ad_performance",
    "growth_rate",
    "resolve_admob_total",
]
