"""Celery tasks for alert retention."""
from __future__ import annotations

from typing import Any

from loguru import logger

from agrileafy.celery_app import celery_app
from agrileafy.db.session import SessionLocal
from agrileafy.services.retention import RetentionSweeper


@celery_app.task(name="agrileafy.tasks.retention.cleanup_old_alerts")
def cleanup_old_alerts(retention_days: int | None = None) -> dict[str, Any]:
    """Delete alerts older than the retention window (periodic task)."""

    logger.info("Starting cleanup of old alerts")
    db = SessionLocal()
    try:
        result = RetentionSweeper(db, retention_days=retention_days).sweep()
        return result.as_dict()

    except Exception as exc:
        db.rollback()
        logger.error("Cleanup error", error=str(exc))
        return {"deleted": 0, "error": str(exc)}
    finally:
        db.close()
