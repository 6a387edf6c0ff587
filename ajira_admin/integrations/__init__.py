"""
Integrations package initialization.
Exports the AdMob reporting client and the push sender.
"""
from .admob import AdMobClient, AdMobError, AdMobAuthError, AdMobAPIError
from .push import FirebasePushSender, PushSender

__all__ = [
    "AdMobClient",
    "AdMobError",
    "AdMobAuthError",
    "AdMobAPIError",
    "FirebasePushSender",
    "PushSender",
]
