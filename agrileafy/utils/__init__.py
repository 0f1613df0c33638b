"""Utility helpers package."""

from agrileafy.utils.exceptions import (
    AgriLeafyException,
    AlertNotFoundError,
    PushGatewayError,
    StoreError,
)
from agrileafy.utils.timestamps import parse_alert_timestamp, utc_now_iso

__all__ = [
    "AgriLeafyException",
    "AlertNotFoundError",
    "PushGatewayError",
    "StoreError",
    "parse_alert_timestamp",
    "utc_now_iso",
]
