"""Pydantic schemas for alert snapshots."""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from agrileafy.db.models.alert import Alert


class AlertRecord(BaseModel):
    """Snapshot of an alert as delivered by the creation trigger."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str | None = None
    message: str | None = None
    priority: str | None = None
    timestamp: str | None = None
    sent: bool = False
    sent_at: datetime | None = Field(None, alias="sentAt")
    recipient_count: int | None = Field(None, alias="recipientCount")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        # Devices without a clock sync report uptime millis as a number
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("priority")
    @classmethod
    def _normalize_priority(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().lower()
        return value or None

    @classmethod
    def from_model(cls, alert: "Alert") -> "AlertRecord":
        return cls(
            title=alert.title,
            message=alert.message,
            priority=alert.priority,
            timestamp=alert.timestamp,
            sent=bool(alert.sent),
            sent_at=alert.sent_at,
            recipient_count=alert.recipient_count,
        )
