"""
Pydantic schemas for AdMob earnings operations.
"""
from typing import Optional
from pydantic import BaseModel, Field

class SyncResult(BaseModel):
    success: bool
    count: int = Field(0, description="Report days upserted")
    inserted: int = 0
    updated: int = 0
    error: Optional[str] = None

class AllTimeAdMobEarnings(BaseModel):
    total: float = 0
    live: bool = Field(False, description="False when the AdMob report could not be fetched")
    lookback_years: int = 5
