from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from agrileafy.db.models import Alert
from agrileafy.services.retention import RetentionSweeper
from agrileafy.utils.timestamps import parse_alert_timestamp

MANILA = ZoneInfo("Asia/Manila")


def _alert_ids(db_session, device_id: str) -> set[str]:
    db_session.expire_all()
    return {alert.id for alert in db_session.query(Alert).filter_by(device_id=device_id).all()}


def test_sweep_deletes_only_expired_alerts(db_session, add_device, add_alert):
    now = datetime.now(timezone.utc)
    add_device("d1")
    add_alert("d1", "old", timestamp=(now - timedelta(days=8)).isoformat())
    add_alert("d1", "recent", timestamp=(now - timedelta(days=6)).isoformat())
    add_alert("d1", "fresh", timestamp=now.isoformat())

    result = RetentionSweeper(db_session, retention_days=7, assume_tz=MANILA).sweep(now=now)

    assert result.deleted == 1
    assert result.alerts_scanned == 3
    assert _alert_ids(db_session, "d1") == {"recent", "fresh"}


def test_sweep_keeps_alerts_without_parseable_timestamp(db_session, add_device, add_alert):
    now = datetime.now(timezone.utc)
    add_device("d1")
    add_alert("d1", "missing")
    add_alert("d1", "garbage", timestamp="not-a-timestamp")
    add_alert("d1", "uptime-millis", timestamp="84213")

    result = RetentionSweeper(db_session, retention_days=7, assume_tz=MANILA).sweep(
        now=now + timedelta(days=365)
    )

    assert result.deleted == 0
    assert result.retained_unparseable == 3
    assert _alert_ids(db_session, "d1") == {"missing", "garbage", "uptime-millis"}


def test_sweep_reads_device_local_timestamps(db_session, add_device, add_alert):
    now = datetime(2025, 11, 6, 0, 0, tzinfo=timezone.utc)
    add_device("d1")
    # 2025-10-29T14:30:45+08:00 is 06:30:45 UTC, about 7 days 17 hours before now
    add_alert("d1", "offset", timestamp="2025-10-29T14:30:45+08:00")
    add_alert("d1", "naive", timestamp="2025-10-29T14:30:45")
    add_alert("d1", "zulu", timestamp="2025-10-30T06:00:00Z")

    result = RetentionSweeper(db_session, retention_days=7, assume_tz=MANILA).sweep(now=now)

    assert result.deleted == 2
    assert _alert_ids(db_session, "d1") == {"zulu"}


def test_sweep_continues_after_device_failure(db_session, add_device, add_alert):
    now = datetime.now(timezone.utc)
    expired = (now - timedelta(days=10)).isoformat()
    for device_id in ("a-broken", "b-healthy"):
        add_device(device_id)
        add_alert(device_id, "old", timestamp=expired)

    original = RetentionSweeper.sweep_device

    def flaky_sweep_device(self, device_id, sweep_now, result):
        if device_id == "a-broken":
            raise SQLAlchemyError("disk I/O error")
        return original(self, device_id, sweep_now, result)

    with patch.object(RetentionSweeper, "sweep_device", flaky_sweep_device):
        result = RetentionSweeper(db_session, retention_days=7).sweep(now=now)

    assert result.devices_scanned == 2
    assert result.failed_devices == 1
    assert result.deleted == 1
    assert _alert_ids(db_session, "a-broken") == {"old"}
    assert _alert_ids(db_session, "b-healthy") == set()


def test_sweep_with_no_devices(db_session):
    result = RetentionSweeper(db_session).sweep()

    assert result.as_dict() == {
        "devices_scanned": 0,
        "alerts_scanned": 0,
        "deleted": 0,
        "retained_unparseable": 0,
        "failed_devices": 0,
    }


def test_unexpected_device_error_does_not_inflate_counters(db_session, add_device, add_alert):
    now = datetime.now(timezone.utc)
    expired = (now - timedelta(days=10)).isoformat()
    add_device("a-broken")
    add_alert("a-broken", "old", timestamp=expired)
    add_alert("a-broken", "corrupt", timestamp="corrupt")
    add_alert("a-broken", "unparseable", timestamp="84213")
    add_device("b-healthy")
    add_alert("b-healthy", "old", timestamp=expired)

    original = parse_alert_timestamp

    def exploding_parse(value, assume_tz):
        if value == "corrupt":
            raise RuntimeError("decoder crashed")
        return original(value, assume_tz)

    with patch("agrileafy.services.retention.parse_alert_timestamp", exploding_parse):
        result = RetentionSweeper(db_session, retention_days=7).sweep(now=now)

    assert result.devices_scanned == 2
    assert result.failed_devices == 1
    assert result.deleted == 1
    assert result.alerts_scanned == 1
    assert result.retained_unparseable == 0
    assert _alert_ids(db_session, "a-broken") == {"old", "corrupt", "unparseable"}
    assert _alert_ids(db_session, "b-healthy") == set()
