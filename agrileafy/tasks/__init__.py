"""Celery tasks package."""

from agrileafy.tasks import alerts, retention

__all__ = ["alerts", "retention"]
