from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy.orm import sessionmaker

from agrileafy.db.events import install_alert_watcher
from agrileafy.db.models import Alert, Device
from agrileafy.schemas.alert import AlertRecord
from agrileafy.services.alerts import AlertStore


@pytest.fixture()
def watched_session(db_session):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db_session.bind)
    install_alert_watcher(factory)
    session = factory()
    try:
        yield session
    finally:
        session.close()


def test_committed_alert_enqueues_one_task(watched_session):
    record = AlertRecord(title="High Moisture", priority="high", timestamp="2025-10-29T14:30:45+08:00")

    with patch("agrileafy.tasks.alerts.send_alert_notification.delay") as delay:
        AlertStore(watched_session).create("d1", record, alert_id="a1")

    delay.assert_called_once()
    device_id, alert_id, snapshot = delay.call_args.args
    assert (device_id, alert_id) == ("d1", "a1")
    assert snapshot["title"] == "High Moisture"
    assert snapshot["priority"] == "high"
    assert snapshot["timestamp"] == "2025-10-29T14:30:45+08:00"


def test_rolled_back_alert_enqueues_nothing(watched_session):
    with patch("agrileafy.tasks.alerts.send_alert_notification.delay") as delay:
        watched_session.add(Device(id="d1"))
        watched_session.add(Alert(device_id="d1", id="a1", title="never committed"))
        watched_session.flush()
        watched_session.rollback()
        watched_session.commit()

    delay.assert_not_called()


def test_installing_twice_does_not_duplicate_tasks(db_session):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db_session.bind)
    install_alert_watcher(factory)
    install_alert_watcher(factory)
    session = factory()

    try:
        with patch("agrileafy.tasks.alerts.send_alert_notification.delay") as delay:
            AlertStore(session).create("d1", AlertRecord(title="Low Light"), alert_id="a2")
    finally:
        session.close()

    assert delay.call_count == 1


def test_broker_failure_does_not_break_commit(watched_session):
    with patch(
        "agrileafy.tasks.alerts.send_alert_notification.delay",
        side_effect=ConnectionError("broker unavailable"),
    ):
        alert = AlertStore(watched_session).create("d1", AlertRecord(), alert_id="a3")

    assert watched_session.get(Alert, ("d1", alert.id)) is not None
