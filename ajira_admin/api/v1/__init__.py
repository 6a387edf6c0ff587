"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import analytics, earnings, notifications

api_router = APIRouter()

api_router.include_router(
    analytics.router,
    prefix="/analytics",
    tags=["analytics"]
)

api_router.include_router(
    earnings.router,
    prefix="/earnings",
    tags=["earnings"]
)

api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["notifications"]
)
