"""Multicast push delivery through Firebase Cloud Messaging."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import firebase_admin
from firebase_admin import credentials, messaging
from loguru import logger

from agrileafy.config import settings
from agrileafy.utils.exceptions import PushGatewayError


@dataclass(frozen=True)
class AndroidHints:
    """Android delivery options applied to every recipient of a batch."""

    priority: str = "high"
    channel_id: str = "agri_leafy_alerts"
    sound: str = "default"
    notification_priority: str = "max"
    default_vibrate_timings: bool = True


@dataclass(frozen=True)
class ApnsHints:
    """APNs delivery options applied to every recipient of a batch."""

    sound: str = "default"
    badge: int = 1


@dataclass
class PushMessage:
    """Platform-agnostic notification payload."""

    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)
    android: AndroidHints = field(default_factory=AndroidHints)
    apns: ApnsHints = field(default_factory=ApnsHints)


@dataclass
class TokenOutcome:
    """Delivery result for a single recipient token."""

    token: str
    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None


@dataclass
class DeliveryReport:
    """Aggregate and per-token outcome of one multicast send."""

    success_count: int = 0
    failure_count: int = 0
    outcomes: List[TokenOutcome] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "DeliveryReport":
        return cls()

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[TokenOutcome]) -> "DeliveryReport":
        successes = sum(1 for outcome in outcomes if outcome.success)
        return cls(
            success_count=successes,
            failure_count=len(outcomes) - successes,
            outcomes=list(outcomes),
        )

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def failed_tokens(self) -> List[str]:
        return [outcome.token for outcome in self.outcomes if not outcome.success]


class PushGateway(Protocol):
    """Capability to deliver one message to many recipient tokens."""

    def send_multicast(self, message: PushMessage, tokens: Sequence[str]) -> DeliveryReport:  # pragma: no cover - interface definition
        """Send ``message`` to every token in one call."""


_app_lock = threading.Lock()
_firebase_app: Optional[firebase_admin.App] = None


def get_firebase_app() -> firebase_admin.App:
    """Initialize the process-wide Firebase app exactly once."""

    global _firebase_app
    if _firebase_app is not None:
        return _firebase_app

    with _app_lock:
        if _firebase_app is None:
            options: Dict[str, Any] = {}
            if settings.FIREBASE_PROJECT_ID:
                options["projectId"] = settings.FIREBASE_PROJECT_ID

            if settings.FIREBASE_CREDENTIALS_PATH:
                credential = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
            else:
                credential = credentials.ApplicationDefault()

            _firebase_app = firebase_admin.initialize_app(credential, options or None)
            logger.info("Firebase app initialized", project_id=settings.FIREBASE_PROJECT_ID)
    return _firebase_app


@dataclass
class FirebasePushGateway:
    """Deliver multicast messages with ``firebase_admin.messaging``."""

    app: Optional[firebase_admin.App] = None
    dry_run: bool = False

    def _build_message(self, message: PushMessage, tokens: Sequence[str]) -> messaging.MulticastMessage:
        android = message.android
        apns = message.apns
        return messaging.MulticastMessage(
            tokens=list(tokens),
            notification=messaging.Notification(title=message.title, body=message.body),
            data=dict(message.data),
            android=messaging.AndroidConfig(
                priority=android.priority,
                notification=messaging.AndroidNotification(
                    channel_id=android.channel_id,
                    sound=android.sound,
                    priority=android.notification_priority,
                    default_vibrate_timings=android.default_vibrate_timings,
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(sound=apns.sound, badge=apns.badge),
                ),
            ),
        )

    def send_multicast(self, message: PushMessage, tokens: Sequence[str]) -> DeliveryReport:
        tokens = list(tokens)
        if not tokens:
            return DeliveryReport.empty()

        try:
            app = self.app or get_firebase_app()
            response = messaging.send_each_for_multicast(
                self._build_message(message, tokens), dry_run=self.dry_run, app=app
            )
        except Exception as exc:
            raise PushGatewayError(
                "Multicast send failed", details={"recipients": len(tokens), "error": str(exc)}
            ) from exc

        outcomes: List[TokenOutcome] = []
        for token, send_response in zip(tokens, response.responses):
            if send_response.success:
                outcomes.append(TokenOutcome(token=token, success=True, message_id=send_response.message_id))
                continue
            exc = send_response.exception
            detail = None
            if exc is not None:
                code = getattr(exc, "code", None)
                detail = f"{code}: {exc}" if code else str(exc)
            outcomes.append(TokenOutcome(token=token, success=False, error=detail))

        return DeliveryReport(
            success_count=response.success_count,
            failure_count=response.failure_count,
            outcomes=outcomes,
        )


_gateway_lock = threading.Lock()
_gateway_singleton: Optional[PushGateway] = None


def get_push_gateway() -> PushGateway:
    """Return the process-wide push gateway."""

    global _gateway_singleton
    with _gateway_lock:
        if _gateway_singleton is None:
            _gateway_singleton = FirebasePushGateway(dry_run=settings.PUSH_DRY_RUN)
    return _gateway_singleton
