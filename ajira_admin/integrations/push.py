"""
Firebase Cloud Messaging integration for admin broadcasts.

The broadcaster works against the small ``PushSender`` protocol; this module
provides the firebase-admin implementation. Per-token failures are
normalized to FCM's error-code strings so the broadcaster can decide which
tokens are permanently dead without knowing firebase-admin's exception types.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging

from ajira_admin import config
from ajira_admin.config import NOTIFICATION_SETTINGS
from ajira_admin.utils import get_logger

logger = get_logger(__name__)

UNREGISTERED = "registration-token-not-registered"
INVALID_TOKEN = "invalid-registration-token"
INVALID_ARGUMENT = "invalid-argument"

# A bad token and a bad payload both come back as INVALID_ARGUMENT; only the
# message names the registration token.
_TOKEN_ERROR_MARKERS = ("registration token", "registration_token")

_APP_NAME = "ajira-admin-push"


@dataclass(frozen=True)
class PushPayload:
    """One cross-platform message shared by every batch of a broadcast."""
    title: str
    body: str
    sent_at: str
    image_url: Optional[str] = None
    action_url: Optional[str] = None

    def data(self) -> Dict[str, str]:
        data = {"sent_at": self.sent_at}
        if self.action_url:
            data["click_action"] = self.action_url
        return data


@dataclass(frozen=True)
class TokenOutcome:
    token: str
    success: bool
    error_code: Optional[str] = None


@dataclass
class BatchOutcome:
    success_count: int = 0
    failure_count: int = 0
    outcomes: List[TokenOutcome] = field(default_factory=list)


class PushSender(Protocol):
    def send_batch(self, payload: PushPayload, tokens: List[str]) -> BatchOutcome:
        ...


def is_token_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _TOKEN_ERROR_MARKERS)


def error_code_for(exc: Optional[Exception]) -> Optional[str]:
    """Map a firebase-admin per-token exception to an FCM error-code string.

    Only an INVALID_ARGUMENT that names the registration token becomes
    ``invalid-registration-token``; payload problems stay ``invalid-argument``
    so the broadcaster never prunes tokens over a bad message.
    """
    if exc is None:
        return None
    if isinstance(exc, messaging.UnregisteredError):
        return UNREGISTERED
    if isinstance(exc, firebase_exceptions.InvalidArgumentError):
        return INVALID_TOKEN if is_token_error(exc) else INVALID_ARGUMENT
    code = getattr(exc, "code", None)
    return str(code).lower().replace("_", "-") if code else "unknown-error"


def build_multicast_message(payload: PushPayload, tokens: List[str]) -> messaging.MulticastMessage:
    sound = str(NOTIFICATION_SETTINGS["sound"])
    return messaging.MulticastMessage(
        tokens=tokens,
        notification=messaging.Notification(
            title=payload.title,
            body=payload.body,
            image=payload.image_url or None,
        ),
        data=payload.data(),
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(
                sound=sound,
                channel_id=str(NOTIFICATION_SETTINGS["android_channel_id"]),
                priority="high",
            ),
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(sound=sound, badge=int(NOTIFICATION_SETTINGS["badge"])),
            ),
        ),
    )


class FirebasePushSender:
    """Multicast sender backed by a lazily-initialized firebase-admin app."""

    _lock = threading.Lock()

    def __init__(self, project_id: str, client_email: str, private_key: str):
        self.project_id = project_id
        self.client_email = client_email
        # Keys pasted into env files usually carry literal "\n" sequences
        self.private_key = private_key.replace("\\n", "\n")
        self._app: Optional[firebase_admin.App] = None

    @classmethod
    def from_config(cls) -> Optional["FirebasePushSender"]:
        if not (config.FIREBASE_PROJECT_ID and config.FIREBASE_CLIENT_EMAIL and config.FIREBASE_PRIVATE_KEY):
            return None
        return cls(config.FIREBASE_PROJECT_ID, config.FIREBASE_CLIENT_EMAIL, config.FIREBASE_PRIVATE_KEY)

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app
        with self._lock:
            try:
                self._app = firebase_admin.get_app(_APP_NAME)
            except ValueError:
                cert = credentials.Certificate({
                    "type": "service_account",
                    "project_id": self.project_id,
                    "client_email": self.client_email,
                    "private_key": self.private_key,
                    "token_uri": "https://oauth2.googleapis.com/token",
                })
                self._app = firebase_admin.initialize_app(cert, {"projectId": self.project_id}, name=_APP_NAME)
                logger.info("Firebase app initialized", project_id=self.project_id)
        return self._app

    def send_batch(self, payload: PushPayload, tokens: List[str]) -> BatchOutcome:
        response = messaging.send_each_for_multicast(build_multicast_message(payload, tokens), app=self._get_app())
        outcomes = [
            TokenOutcome(token=token, success=result.success, error_code=error_code_for(result.exception))
            for token, result in zip(tokens, response.responses)
        ]
        return BatchOutcome(
            success_count=response.success_count,
            failure_count=response.failure_count,
            outcomes=outcomes,
        )


__all__ = [
    "UNREGISTERED",
    "INVALID_TOKEN",
    "INVALID_ARGUMENT",
    "PushPayload",
    "TokenOutcome",
    "BatchOutcome",
    "PushSender",
    "is_token_error",
    "error_code_for",
    "build_multicast_message",
    "FirebasePushSender",
]
