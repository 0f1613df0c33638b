"""Session hooks that turn committed alert inserts into notification tasks."""
from __future__ import annotations

from loguru import logger
from sqlalchemy import event
from sqlalchemy.orm import Session, sessionmaker

_PENDING_KEY = "agrileafy_new_alerts"


def _collect_new_alerts(session: Session, flush_context) -> None:
    from agrileafy.db.models.alert import Alert
    from agrileafy.schemas.alert import AlertRecord

    pending = session.info.setdefault(_PENDING_KEY, [])
    # session.new still holds the pre-flush state here
    for obj in session.new:
        if isinstance(obj, Alert):
            snapshot = AlertRecord.from_model(obj).model_dump(mode="json", exclude_none=True)
            pending.append((obj.device_id, obj.id, snapshot))


def _enqueue_committed_alerts(session: Session) -> None:
    from agrileafy.tasks.alerts import send_alert_notification

    pending = session.info.pop(_PENDING_KEY, [])
    for device_id, alert_id, snapshot in pending:
        try:
            send_alert_notification.delay(device_id, alert_id, snapshot)
        except Exception as exc:
            logger.error(
                "Failed to enqueue alert notification",
                device_id=device_id,
                alert_id=alert_id,
                error=str(exc),
            )
        else:
            logger.debug("Alert notification enqueued", device_id=device_id, alert_id=alert_id)


def _discard_pending_alerts(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)


def install_alert_watcher(factory: sessionmaker) -> None:
    """Enqueue one notification task per alert committed through ``factory``."""

    if event.contains(factory, "after_commit", _enqueue_committed_alerts):
        return
    event.listen(factory, "after_flush", _collect_new_alerts)
    event.listen(factory, "after_commit", _enqueue_committed_alerts)
    event.listen(factory, "after_rollback", _discard_pending_alerts)
