"""Core application configuration & tunable dashboard rules.

Everything that may need adjusting without touching service logic (page
sizes, AdMob endpoints, push limits, analytics windows) is centralized here.
Credentials come from the environment; missing AdMob or Firebase credentials
are not fatal, the dependent features degrade instead (database-only revenue,
"not configured" broadcast error). Groups are plain dicts so tests can
monkeypatch individual values.
"""
from __future__ import annotations

import os

# ------------------------------- Database --------------------------------- #
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./ajira_admin.db")

# -------------------------------- Logging --------------------------------- #
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("LOG_FILE", "logs/app.log") or None

# ------------------------------- Admin auth ------------------------------- #
# Single shared bearer token for the admin dashboard's server calls.
ADMIN_API_TOKEN: str | None = os.getenv("ADMIN_API_TOKEN") or None

CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# ------------------------------- Pagination ------------------------------- #
PAGINATION_SETTINGS: dict[str, int] = {
	# The hosted store caps a single query at 1000 rows.
	"page_size": 1000,
	# uid chunk for `IN (...)` token lookups
	"token_lookup_chunk": 1000,
}

# --------------------------------- AdMob ---------------------------------- #
ADMOB_API_CLIENT_ID: str | None = os.getenv("ADMOB_API_CLIENT_ID") or None
ADMOB_API_CLIENT_SECRET: str | None = os.getenv("ADMOB_API_CLIENT_SECRET") or None
ADMOB_API_REFRESH_TOKEN: str | None = os.getenv("ADMOB_API_REFRESH_TOKEN") or None
ADMOB_PUBLISHER_ID: str | None = os.getenv("ADMOB_PUBLISHER_ID") or None

ADMOB_SETTINGS: dict[str, str | int | float] = {
	"token_url": "https://oauth2.googleapis.com/token",
	"base_url": "https://admob.googleapis.com/v1",
	# Only the Ajira AI app is reported on.
	"app_id": "ca-app-pub-1644643871385985~1470724022",
	"currency": "USD",
	"language": "en-US",
	"request_timeout_seconds": float(os.getenv("ADMOB_REQUEST_TIMEOUT", "30")),
	# "All-time" means this many years back from today.
	"all_time_lookback_years": 5,
	"default_sync_days": 30,
}

# ----------------------------- Push (Firebase) ---------------------------- #
FIREBASE_PROJECT_ID: str | None = os.getenv("FIREBASE_PROJECT_ID") or None
FIREBASE_CLIENT_EMAIL: str | None = os.getenv("FIREBASE_CLIENT_EMAIL") or None
FIREBASE_PRIVATE_KEY: str | None = os.getenv("FIREBASE_PRIVATE_KEY") or None

NOTIFICATION_SETTINGS: dict[str, int | tuple[str, ...]] = {
	"title_max_length": 65,
	"message_max_length": 240,
	# Provider ceiling for one multicast call
	"batch_size": 500,
	# Per-token failure codes that mean the token will never work again
	"permanent_failure_codes": (
		"invalid-registration-token",
		"registration-token-not-registered",
	),
	"android_channel_id": "default",
	"sound": "default",
	"badge": 1,
}

# ------------------------------- Analytics -------------------------------- #
ANALYTICS_SETTINGS: dict[str, int] = {
	"growth_window_days": 30,          # platform + dashboard comparisons
	"history_months": 6,               # monthly series length
	"active_user_window_days": 3,      # last_3_reward_date freshness
	"earnings_recent_days": 7,
	"top_sources": 5,
	"top_n": 10,
	"recent_items": 5,
}

__all__ = [
	"DATABASE_URL",
	"LOG_LEVEL",
	"LOG_FILE",
	"ADMIN_API_TOKEN",
	"CORS_ORIGINS",
	# Rule groups
	"PAGINATION_SETTINGS",
	"ADMOB_SETTINGS",
	"NOTIFICATION_SETTINGS",
	"ANALYTICS_SETTINGS",
	# Credentials
	"ADMOB_API_CLIENT_ID",
	"ADMOB_API_CLIENT_SECRET",
	"ADMOB_API_REFRESH_TOKEN",
	"ADMOB_PUBLISHER_ID",
	"FIREBASE_PROJECT_ID",
	"FIREBASE_CLIENT_EMAIL",
	"FIREBASE_PRIVATE_KEY",
]
