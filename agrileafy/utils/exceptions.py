"""Custom exception classes."""
from typing import Any, Dict, Optional


class AgriLeafyException(Exception):
    """Base exception for the notifier."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class StoreError(AgriLeafyException):
    """Database operation errors."""
    pass


class AlertNotFoundError(AgriLeafyException):
    """Alert record does not exist for the given device."""
    pass


class PushGatewayError(AgriLeafyException):
    """The push gateway rejected or failed a whole multicast batch."""
    pass
