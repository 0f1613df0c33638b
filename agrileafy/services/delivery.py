"""Apply multicast delivery outcomes to the token registry and the alert."""
from __future__ import annotations

from loguru import logger
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from agrileafy.db.models.alert import Alert
from agrileafy.services.push_gateway import DeliveryReport
from agrileafy.services.token_registry import TokenRegistry


class DeliveryOutcomeHandler:
    """Prune bounced tokens and record delivery bookkeeping on the alert."""

    def __init__(self, db: Session, registry: TokenRegistry | None = None):
        self.db = db
        self.registry = registry or TokenRegistry(db)

    def prune_failed_tokens(self, device_id: str, report: DeliveryReport) -> int:
        """Remove every token the gateway reported as failed.

        A single failure removes the registration until the client
        registers again.
        """
        failed = report.failed_tokens
        if not failed:
            return 0

        logger.info("Removing failed tokens", device_id=device_id, count=len(failed))
        removed = 0
        for token in failed:
            if self.registry.remove(device_id, token):
                removed += 1
        return removed

    def finalize(self, device_id: str, alert_id: str, report: DeliveryReport) -> int:
        """Record the outcome of a dispatch and return the number of pruned tokens.

        ``sent`` and ``recipient_count`` are overwritten on every call and
        ``sent_at`` keeps the first server time it was given, so replaying
        the same report leaves the alert unchanged.
        """
        try:
            pruned = self.prune_failed_tokens(device_id, report)
            self.db.execute(
                update(Alert)
                .where(Alert.device_id == device_id, Alert.id == alert_id)
                .values(
                    sent=True,
                    sent_at=func.coalesce(Alert.sent_at, func.now()),
                    recipient_count=report.success_count,
                )
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Alert marked as sent",
            device_id=device_id,
            alert_id=alert_id,
            recipient_count=report.success_count,
            pruned_tokens=pruned,
        )
        return pruned
