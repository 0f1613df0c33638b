"""Helpers for the ISO-8601 timestamps reported by field devices."""
from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from agrileafy.config import settings


def default_timezone() -> tzinfo:
    """Timezone assumed for naive device timestamps."""

    return ZoneInfo(settings.SWEEP_TIMEZONE)


def parse_alert_timestamp(value: object, assume_tz: tzinfo | None = None) -> datetime | None:
    """Parse an alert timestamp into an aware datetime.

    Returns ``None`` for missing or unparseable values so callers can keep
    the record rather than guess its age. A trailing ``Z`` is accepted and
    naive values are interpreted in ``assume_tz`` (the sweep timezone by
    default).
    """

    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=assume_tz or default_timezone())
    return parsed


def utc_now_iso() -> str:
    """Current UTC time in ISO-8601 form with millisecond precision."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
