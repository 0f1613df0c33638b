"""Database models package."""
from agrileafy.db.models.device import Device
from agrileafy.db.models.alert import Alert
from agrileafy.db.models.registered_token import RegisteredToken

__all__ = [
    "Device",
    "Alert",
    "RegisteredToken",
]
