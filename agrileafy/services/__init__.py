"""Service layer package."""

from agrileafy.services.alert_pipeline import AlertNotificationPipeline
from agrileafy.services.alerts import AlertStore
from agrileafy.services.delivery import DeliveryOutcomeHandler
from agrileafy.services.dispatcher import NotificationDispatcher
from agrileafy.services.recipients import RecipientResolver
from agrileafy.services.retention import RetentionSweeper
from agrileafy.services.token_registry import TokenRegistry

__all__ = [
    "AlertNotificationPipeline",
    "AlertStore",
    "DeliveryOutcomeHandler",
    "NotificationDispatcher",
    "RecipientResolver",
    "RetentionSweeper",
    "TokenRegistry",
]
