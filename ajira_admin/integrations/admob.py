"""
AdMob reporting integration.

Exchanges the long-lived OAuth2 refresh token for an access token, then issues
one ``networkReport:generate`` call for a date range filtered to the Ajira AI
app. Earnings arrive in micros and are converted to currency units here, so
callers only ever see plain per-day rows.

Every failure is raised as an ``AdMobError`` subclass; callers are expected to
catch it and fall back to stored earnings.
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from ajira_admin import config
from ajira_admin.config import ADMOB_SETTINGS
from ajira_admin.utils import get_logger

logger = get_logger(__name__)

ADMOB_APP_ID = str(ADMOB_SETTINGS["app_id"])


class AdMobError(Exception):
    """Base class for AdMob failures."""


class AdMobAuthError(AdMobError):
    """Missing credentials or a rejected token exchange."""


class AdMobAPIError(AdMobError):
    """Report call failed (transport error or non-2xx status)."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class AdMobCredentials:
    client_id: str
    client_secret: str
    refresh_token: str


@dataclass(frozen=True)
class AdMobReportRow:
    date: date
    earnings: float
    impressions: int
    clicks: int
    currency: str = "USD"


async def _request_json(
    url: str,
    *,
    data: Optional[Dict[str, str]] = None,
    json_body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Any, str]:
    """POST and return ``(status, parsed_json_or_None, raw_text)``."""
    timeout = aiohttp.ClientTimeout(total=float(ADMOB_SETTINGS["request_timeout_seconds"]))
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, data=data, json=json_body, headers=headers) as response:
                text = await response.text()
                status = response.status
    except asyncio.TimeoutError:
        raise AdMobAPIError(f"AdMob request timed out: {url}")
    except aiohttp.ClientError as e:
        raise AdMobAPIError(f"AdMob client error: {e}")

    try:
        payload = json.loads(text) if text else None
    except ValueError:
        payload = None
    return status, payload, text


async def get_access_token(credentials: AdMobCredentials) -> str:
    """Refresh-token grant against the Google OAuth2 token endpoint."""
    if not (credentials.client_id and credentials.client_secret and credentials.refresh_token):
        raise AdMobAuthError("AdMob credentials are incomplete")

    form = {
        "client_id": credentials.client_id,
        "client_secret": credentials.client_secret,
        "refresh_token": credentials.refresh_token,
        "grant_type": "refresh_token",
    }
    try:
        status, payload, text = await _request_json(
            str(ADMOB_SETTINGS["token_url"]),
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except AdMobAPIError as e:
        raise AdMobAuthError(f"Failed to refresh access token: {e}")

    if status < 200 or status >= 300:
        logger.error("AdMob token refresh rejected", status_code=status, response=text[:500])
        raise AdMobAuthError("Failed to refresh access token")

    token = payload.get("access_token") if isinstance(payload, dict) else None
    if not token:
        raise AdMobAuthError("Token response did not contain an access_token")
    return str(token)


def _date_parts(value: date) -> Dict[str, int]:
    return {"year": value.year, "month": value.month, "day": value.day}


def _int_value(raw: Any) -> int:
    try:
        return int(raw or 0)
    except (TypeError, ValueError):
        return 0


def _parse_report_date(raw: str) -> date | None:
    # DATE dimension values are "YYYYMMDD"
    try:
        return datetime.strptime(str(raw), "%Y%m%d").date()
    except ValueError:
        return None


def parse_report_rows(payload: Any, currency: str = "USD") -> List[AdMobReportRow]:
    """Parse the streamed report array (header / row / footer entries) into rows."""
    if not isinstance(payload, list):
        return []

    rows: List[AdMobReportRow] = []
    for item in payload:
        row = item.get("row") if isinstance(item, dict) else None
        if not row:
            continue
        dimensions = row.get("dimensionValues") or {}
        metrics = row.get("metricValues") or {}
        report_date = _parse_report_date((dimensions.get("DATE") or {}).get("value", ""))
        if report_date is None:
            logger.warning("Skipping AdMob row with unparseable date", row=row)
            continue
        micros = _int_value((metrics.get("ESTIMATED_EARNINGS") or {}).get("microsValue"))
        rows.append(
            AdMobReportRow(
                date=report_date,
                earnings=micros / 1_000_000,
                impressions=_int_value((metrics.get("IMPRESSIONS") or {}).get("integerValue")),
                clicks=_int_value((metrics.get("CLICKS") or {}).get("integerValue")),
                currency=currency,
            )
        )
    return rows


def build_report_spec(start_date: date, end_date: date, app_id: str = ADMOB_APP_ID) -> Dict[str, Any]:
    return {
        "reportSpec": {
            "dateRange": {
                "startDate": _date_parts(start_date),
                "endDate": _date_parts(end_date),
            },
            "dimensions": ["DATE"],
            "metrics": ["IMPRESSIONS", "CLICKS", "ESTIMATED_EARNINGS"],
            "dimensionFilters": [
                {"dimension": "APP", "matchesAny": {"values": [app_id]}},
            ],
            "localizationSettings": {
                "currencyCode": str(ADMOB_SETTINGS["currency"]),
                "languageCode": str(ADMOB_SETTINGS["language"]),
            },
        }
    }


async def fetch_admob_earnings(
    publisher_id: str,
    access_token: str,
    start_date: date,
    end_date: date,
    app_id: str = ADMOB_APP_ID,
) -> List[AdMobReportRow]:
    """One report call for ``[start_date, end_date]`` inclusive; ``[]`` when the API has no rows."""
    url = f"{ADMOB_SETTINGS['base_url']}/accounts/{publisher_id}/networkReport:generate"
    status, payload, text = await _request_json(
        url,
        json_body=build_report_spec(start_date, end_date, app_id),
        headers={"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"},
    )
    if status < 200 or status >= 300:
        logger.error("AdMob report request failed", status_code=status, response=text[:500])
        raise AdMobAPIError(f"AdMob API Error: HTTP {status}", status=status)

    rows = parse_report_rows(payload, currency=str(ADMOB_SETTINGS["currency"]))
    logger.debug(
        "AdMob report fetched",
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        rows=len(rows),
    )
    return rows


def load_admob_credentials() -> Tuple[AdMobCredentials, str] | None:
    """Credentials plus the bare publisher id, or None when anything is missing."""
    client_id = config.ADMOB_API_CLIENT_ID
    client_secret = config.ADMOB_API_CLIENT_SECRET
    refresh_token = config.ADMOB_API_REFRESH_TOKEN
    publisher_id = config.ADMOB_PUBLISHER_ID
    if not (client_id and client_secret and refresh_token and publisher_id):
        return None
    if publisher_id.startswith("pub-"):
        publisher_id = publisher_id[len("pub-"):]
    return AdMobCredentials(client_id, client_secret, refresh_token), publisher_id


class AdMobClient:
    """Credential-bound AdMob client: token exchange + report in one call."""

    def __init__(self, credentials: AdMobCredentials, publisher_id: str, app_id: str = ADMOB_APP_ID):
        self.credentials = credentials
        self.publisher_id = publisher_id
        self.app_id = app_id

    @classmethod
    def from_config(cls) -> Optional["AdMobClient"]:
        loaded = load_admob_credentials()
        if loaded is None:
            return None
        credentials, publisher_id = loaded
        return cls(credentials, publisher_id)

    async def fetch_report(self, start_date: date, end_date: date) -> List[AdMobReportRow]:
        access_token = await get_access_token(self.credentials)
        return await fetch_admob_earnings(self.publisher_id, access_token, start_date, end_date, self.app_id)


__all__ = [
    "ADMOB_APP_ID",
    "AdMobError",
    "AdMobAuthError",
    "AdMobAPIError",
    "AdMobCredentials",
    "AdMobReportRow",
    "get_access_token",
    "fetch_admob_earnings",
    "parse_report_rows",
    "build_report_spec",
    "load_admob_credentials",
    "AdMobClient",
]
