"""Ajira admin dashboard backend.

Analytics aggregation over the platform tables, AdMob revenue reconciliation
and sync, and Firebase push broadcasts, served through ``ajira_admin.main:app``.
"""

__all__: list[str] = []
