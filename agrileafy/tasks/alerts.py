"""Celery tasks reacting to newly created alerts."""
from __future__ import annotations

from typing import Any

from loguru import logger

from agrileafy.celery_app import celery_app
from agrileafy.db.session import SessionLocal
from agrileafy.services.alert_pipeline import STATUS_FAILED, AlertNotificationPipeline
from agrileafy.services.push_gateway import get_push_gateway


@celery_app.task(name="agrileafy.tasks.alerts.send_alert_notification")
def send_alert_notification(
    device_id: str, alert_id: str, snapshot: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Fan a new alert out to every active token of its device."""

    db = SessionLocal()
    try:
        pipeline = AlertNotificationPipeline(db, get_push_gateway())
        outcome = pipeline.run(device_id, alert_id, snapshot)
        return outcome.as_dict()

    except Exception as exc:  # pragma: no cover - defensive logging
        logger.error(
            "Alert notification task failed",
            device_id=device_id,
            alert_id=alert_id,
            error=str(exc),
        )
        return {"device_id": device_id, "alert_id": alert_id, "status": STATUS_FAILED}
    finally:
        db.close()
