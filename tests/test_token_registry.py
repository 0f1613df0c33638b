from __future__ import annotations

import hashlib

from agrileafy.db.models import Device, RegisteredToken
from agrileafy.services.token_registry import TokenRegistry, registry_key


def test_registry_key_uses_full_token():
    shared_prefix = "fGx1:APA91bH-shared-prefix"
    first = f"{shared_prefix}-installation-one"
    second = f"{shared_prefix}-installation-two"

    assert registry_key(first) != registry_key(second)
    assert registry_key(first) == hashlib.sha256(first.encode("utf-8")).hexdigest()


def test_register_creates_device_on_first_write(db_session):
    registry = TokenRegistry(db_session)

    entry = registry.register("esp32-greenhouse", "token-a")

    assert db_session.get(Device, "esp32-greenhouse") is not None
    assert entry.active is True
    assert entry.token_key == registry_key("token-a")


def test_register_refreshes_existing_entry(db_session):
    registry = TokenRegistry(db_session)
    registry.register("d1", "token-a", active=False)

    registry.register("d1", "token-a")

    entries = registry.list_tokens("d1")
    assert len(entries) == 1
    assert entries[0].active is True


def test_set_active_flips_flag(db_session, add_device):
    add_device("d1", {"token-a": True})
    registry = TokenRegistry(db_session)

    assert registry.set_active("d1", "token-a", False) is True
    assert registry.set_active("d1", "unknown", False) is False
    assert registry.list_tokens("d1")[0].active is False


def test_remove_is_idempotent(db_session, add_device):
    add_device("d1", {"token-a": True, "token-b": True})
    registry = TokenRegistry(db_session)

    assert registry.remove("d1", "token-a") is True
    db_session.commit()
    assert registry.remove("d1", "token-a") is False
    db_session.commit()

    remaining = db_session.query(RegisteredToken).filter_by(device_id="d1").all()
    assert [entry.token for entry in remaining] == ["token-b"]
