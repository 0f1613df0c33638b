"""Retention sweep for old alert records."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from agrileafy.config import settings
from agrileafy.db.models.alert import Alert
from agrileafy.db.models.device import Device
from agrileafy.utils.timestamps import default_timezone, parse_alert_timestamp


@dataclass
class SweepResult:
    """Aggregate counters for one retention sweep."""

    devices_scanned: int = 0
    alerts_scanned: int = 0
    deleted: int = 0
    retained_unparseable: int = 0
    failed_devices: int = 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class RetentionSweeper:
    """Delete alerts older than the retention window, device by device."""

    def __init__(
        self,
        db: Session,
        retention_days: int | None = None,
        assume_tz: tzinfo | None = None,
    ):
        self.db = db
        self.retention = timedelta(
            days=retention_days if retention_days is not None else settings.ALERT_RETENTION_DAYS
        )
        self.assume_tz = assume_tz or default_timezone()

    def is_expired(self, alert: Alert, now: datetime) -> bool | None:
        """Return whether the alert is past retention, or None when its age is unknown."""
        parsed = parse_alert_timestamp(alert.timestamp, self.assume_tz)
        if parsed is None:
            return None
        return now - parsed > self.retention

    def sweep_device(self, device_id: str, now: datetime, result: SweepResult) -> int:
        alerts = self.db.scalars(select(Alert).where(Alert.device_id == device_id)).all()

        deleted = scanned = unparseable = 0
        for alert in alerts:
            scanned += 1
            expired = self.is_expired(alert, now)
            if expired is None:
                unparseable += 1
            elif expired:
                self.db.delete(alert)
                deleted += 1

        self.db.commit()
        # Counted only once the device's deletions are durable
        result.alerts_scanned += scanned
        result.retained_unparseable += unparseable
        return deleted

    def sweep(self, now: datetime | None = None) -> SweepResult:
        """Scan every device and delete expired alerts.

        A failure on one device is logged and the sweep moves on to the
        next one.
        """
        now = now or datetime.now(timezone.utc)
        result = SweepResult()

        device_ids = self.db.scalars(select(Device.id).order_by(Device.id)).all()
        for device_id in device_ids:
            result.devices_scanned += 1
            try:
                result.deleted += self.sweep_device(device_id, now, result)
            except Exception as exc:
                self.db.rollback()
                result.failed_devices += 1
                logger.error(
                    "Failed to clean up alerts for device",
                    device_id=device_id,
                    error=str(exc),
                )
                continue

        logger.info(
            "Cleanup complete",
            deleted=result.deleted,
            devices=result.devices_scanned,
            failed_devices=result.failed_devices,
            cutoff=(now - self.retention).isoformat(),
        )
        return result
