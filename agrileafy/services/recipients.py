"""Resolve the active push recipients for a device."""
from __future__ import annotations

from loguru import logger
from sqlalchemy.orm import Session

from agrileafy.services.token_registry import TokenRegistry
from agrileafy.utils.exceptions import StoreError


class RecipientResolver:
    def __init__(self, db: Session, registry: TokenRegistry | None = None):
        self.db = db
        self.registry = registry or TokenRegistry(db)

    def resolve(self, device_id: str) -> set[str]:
        """Return the tokens of every active registration for ``device_id``.

        An unknown device, an empty registry or an unreadable registry all
        resolve to an empty set.
        """
        try:
            entries = self.registry.list_tokens(device_id)
        except StoreError as exc:
            self.db.rollback()
            logger.warning(
                "Token registry unreadable, treating as no recipients",
                device_id=device_id,
                error=str(exc.__cause__ or exc),
            )
            return set()

        tokens = {entry.token for entry in entries if entry.active is True and entry.token}
        if not tokens:
            logger.info("No active FCM tokens for device", device_id=device_id)
        return tokens
