"""Build alert notifications and hand them to the push gateway."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from agrileafy.config import settings
from agrileafy.schemas.alert import AlertRecord
from agrileafy.services.push_gateway import (
    AndroidHints,
    ApnsHints,
    DeliveryReport,
    PushGateway,
    PushMessage,
)
from agrileafy.utils.timestamps import utc_now_iso


@dataclass(frozen=True)
class NotificationDefaults:
    """Fallbacks used when an alert omits optional fields."""

    title: str = "🌱 Agri-Leafy Alert"
    body: str = "Check your plant system"
    priority: str = "medium"
    message_type: str = "sensor_alert"
    click_action: str = "FLUTTER_NOTIFICATION_CLICK"
    channel_id: str = "agri_leafy_alerts"
    sound: str = "default"
    badge: int = 1

    @classmethod
    def from_settings(cls) -> "NotificationDefaults":
        return cls(channel_id=settings.NOTIFICATION_CHANNEL_ID)


class NotificationDispatcher:
    """Send one multicast notification per alert."""

    def __init__(self, gateway: PushGateway, defaults: NotificationDefaults | None = None):
        self.gateway = gateway
        self.defaults = defaults or NotificationDefaults.from_settings()

    def build_message(self, alert_id: str, alert: AlertRecord) -> PushMessage:
        defaults = self.defaults
        return PushMessage(
            title=alert.title or defaults.title,
            body=alert.message or defaults.body,
            data={
                "alertId": alert_id,
                "priority": alert.priority or defaults.priority,
                "timestamp": alert.timestamp or utc_now_iso(),
                "type": defaults.message_type,
                "click_action": defaults.click_action,
            },
            android=AndroidHints(channel_id=defaults.channel_id, sound=defaults.sound),
            apns=ApnsHints(sound=defaults.sound, badge=defaults.badge),
        )

    def dispatch(self, alert_id: str, alert: AlertRecord, tokens: Iterable[str]) -> DeliveryReport:
        """Deliver the alert to ``tokens`` with a single gateway call.

        No call is made for an empty recipient set. Gateway failures
        propagate as :class:`PushGatewayError` without retry.
        """
        recipients = sorted(set(tokens))
        if not recipients:
            return DeliveryReport.empty()

        message = self.build_message(alert_id, alert)
        logger.info("Sending alert notification", alert_id=alert_id, recipients=len(recipients))
        report = self.gateway.send_multicast(message, recipients)

        logger.info(
            "Alert notification delivered",
            alert_id=alert_id,
            success=report.success_count,
            failures=report.failure_count,
        )
        for outcome in report.outcomes:
            if not outcome.success:
                logger.warning(
                    "Token delivery failed",
                    alert_id=alert_id,
                    token_prefix=outcome.token[:12],
                    error=outcome.error,
                )
        return report
