"""Write access to device alert records."""
from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from agrileafy.db.models.alert import Alert
from agrileafy.schemas.alert import AlertRecord
from agrileafy.services.token_registry import ensure_device


class AlertStore:
    def __init__(self, db: Session):
        self.db = db

    def create(self, device_id: str, record: AlertRecord, alert_id: str | None = None) -> Alert:
        """Persist a new alert, creating the device on first write.

        Committing through the application session factory enqueues the
        notification task for the new alert.
        """
        ensure_device(self.db, device_id)
        alert = Alert(
            device_id=device_id,
            id=alert_id or uuid.uuid4().hex,
            title=record.title,
            message=record.message,
            priority=record.priority or "medium",
            timestamp=record.timestamp,
        )
        self.db.add(alert)
        self.db.commit()
        return alert
