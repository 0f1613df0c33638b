"""Orchestrate notification fan-out for a newly created alert."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from agrileafy.db.models.alert import Alert
from agrileafy.schemas.alert import AlertRecord
from agrileafy.services.delivery import DeliveryOutcomeHandler
from agrileafy.services.dispatcher import NotificationDispatcher
from agrileafy.services.push_gateway import DeliveryReport, PushGateway
from agrileafy.services.recipients import RecipientResolver
from agrileafy.services.token_registry import TokenRegistry
from agrileafy.utils.exceptions import AlertNotFoundError, PushGatewayError

STATUS_SENT = "sent"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass
class PipelineOutcome:
    """Result of processing one alert creation event."""

    device_id: str
    alert_id: str
    status: str
    success_count: int = 0
    failure_count: int = 0
    pruned_tokens: int = 0
    reason: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class AlertNotificationPipeline:
    """Claim, resolve, dispatch and finalize a single alert."""

    def __init__(self, db: Session, gateway: PushGateway):
        self.db = db
        registry = TokenRegistry(db)
        self.resolver = RecipientResolver(db, registry)
        self.dispatcher = NotificationDispatcher(gateway)
        self.outcomes = DeliveryOutcomeHandler(db, registry)

    def claim(self, device_id: str, alert_id: str) -> bool:
        """Atomically mark the alert as claimed for dispatch.

        Only one caller wins for a given alert; replays of the creation
        event find the marker already set.
        """
        result = self.db.execute(
            update(Alert)
            .where(
                Alert.device_id == device_id,
                Alert.id == alert_id,
                Alert.dispatch_claimed_at.is_(None),
            )
            .values(dispatch_claimed_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def release_claim(self, device_id: str, alert_id: str) -> None:
        """Clear the claim so the alert can be processed again."""
        self.db.execute(
            update(Alert)
            .where(Alert.device_id == device_id, Alert.id == alert_id)
            .values(dispatch_claimed_at=None)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

    def load_record(
        self, device_id: str, alert_id: str, snapshot: Mapping[str, Any] | None
    ) -> AlertRecord:
        if snapshot is not None:
            return AlertRecord.model_validate(snapshot)

        alert = self.db.scalars(
            select(Alert).where(Alert.device_id == device_id, Alert.id == alert_id)
        ).first()
        if alert is None:
            raise AlertNotFoundError(
                "Alert not found", details={"device_id": device_id, "alert_id": alert_id}
            )
        return AlertRecord.from_model(alert)

    def _process(
        self, device_id: str, alert_id: str, snapshot: Mapping[str, Any] | None
    ) -> PipelineOutcome:
        record = self.load_record(device_id, alert_id, snapshot)
        if not self.claim(device_id, alert_id):
            logger.info(
                "Alert missing or already claimed, skipping dispatch",
                device_id=device_id,
                alert_id=alert_id,
            )
            return PipelineOutcome(device_id, alert_id, STATUS_SKIPPED, reason="already_claimed")

        logger.info(
            "New alert detected",
            device_id=device_id,
            alert_id=alert_id,
            title=record.title,
            priority=record.priority,
        )

        # The claim is kept only once bookkeeping has started
        try:
            tokens = self.resolver.resolve(device_id)
            if tokens:
                report = self.dispatcher.dispatch(alert_id, record, tokens)
            else:
                report = DeliveryReport.empty()
        except Exception as exc:
            self.db.rollback()
            if isinstance(exc, PushGatewayError):
                reason = "send_failed"
                logger.error(
                    "Error sending notification",
                    device_id=device_id,
                    alert_id=alert_id,
                    error=exc.message,
                    details=exc.details,
                )
            else:
                reason = type(exc).__name__
                logger.exception(
                    "Error sending notification",
                    device_id=device_id,
                    alert_id=alert_id,
                    error=str(exc),
                )
            self.release_claim(device_id, alert_id)
            return PipelineOutcome(device_id, alert_id, STATUS_FAILED, reason=reason)

        pruned = self.outcomes.finalize(device_id, alert_id, report)
        return PipelineOutcome(
            device_id,
            alert_id,
            STATUS_SENT,
            success_count=report.success_count,
            failure_count=report.failure_count,
            pruned_tokens=pruned,
        )

    def run(
        self, device_id: str, alert_id: str, snapshot: Mapping[str, Any] | None = None
    ) -> PipelineOutcome:
        """Process one alert creation event; never raises."""
        try:
            return self._process(device_id, alert_id, snapshot)
        except Exception as exc:
            self.db.rollback()
            logger.exception(
                "Alert notification pipeline failed",
                device_id=device_id,
                alert_id=alert_id,
                error=str(exc),
            )
            return PipelineOutcome(device_id, alert_id, STATUS_FAILED, reason=type(exc).__name__)
