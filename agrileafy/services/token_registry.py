"""Access to the per-device FCM token registry."""
from __future__ import annotations

import hashlib

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agrileafy.db.models.device import Device
from agrileafy.db.models.registered_token import RegisteredToken
from agrileafy.utils.exceptions import StoreError


def registry_key(token: str) -> str:
    """Derive the registry key for ``token``.

    The key is the SHA-256 digest of the full token so distinct tokens
    never share a registry slot.
    """

    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def ensure_device(db: Session, device_id: str) -> Device:
    """Return the device row, creating it on first write."""

    device = db.get(Device, device_id)
    if device is None:
        device = Device(id=device_id)
        db.add(device)
        db.flush()
    return device


class TokenRegistry:
    """Read and mutate registered tokens for a device."""

    def __init__(self, db: Session):
        self.db = db

    def list_tokens(self, device_id: str) -> list[RegisteredToken]:
        """Snapshot of every registered token for the device."""
        try:
            return list(
                self.db.scalars(
                    select(RegisteredToken).where(RegisteredToken.device_id == device_id)
                ).all()
            )
        except SQLAlchemyError as exc:
            raise StoreError(
                "Failed to read token registry", details={"device_id": device_id}
            ) from exc

    def register(self, device_id: str, token: str, active: bool = True) -> RegisteredToken:
        """Register or refresh a token for the device."""
        if not token:
            raise ValueError("Token required")

        ensure_device(self.db, device_id)
        key = registry_key(token)
        entry = self.db.get(RegisteredToken, (device_id, key))
        if entry is None:
            entry = RegisteredToken(device_id=device_id, token_key=key, token=token, active=active)
            self.db.add(entry)
        else:
            entry.token = token
            entry.active = active

        self.db.commit()
        return entry

    def set_active(self, device_id: str, token: str, active: bool) -> bool:
        """Flip the active flag; returns False when the token is unknown."""
        entry = self.db.get(RegisteredToken, (device_id, registry_key(token)))
        if entry is None:
            return False
        entry.active = active
        self.db.commit()
        return True

    def remove(self, device_id: str, token: str) -> bool:
        """Delete the registry entry for ``token``.

        Removing an entry that is already gone is a no-op. The caller owns
        the commit.
        """
        result = self.db.execute(
            delete(RegisteredToken).where(
                RegisteredToken.device_id == device_id,
                RegisteredToken.token_key == registry_key(token),
            )
        )
        removed = bool(result.rowcount)
        if removed:
            logger.info(
                "Registered token removed",
                device_id=device_id,
                token_prefix=token[:12],
            )
        return removed
