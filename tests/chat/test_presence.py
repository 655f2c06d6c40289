from datetime import datetime, timedelta, timezone

from domain.chat.entity import generate_guest_name, new_connection_id
from infrastructure.realtime.presence import PresenceRegistry


def test_register_and_unregister_user():
    registry = PresenceRegistry()
    user = registry.register("c1", "TestUser")

    assert user.id == "c1"
    assert user.name == "TestUser"
    assert user.connected_at.tzinfo is not None
    assert "c1" in registry
    assert len(registry) == 1

    registry.unregister("c1")
    assert "c1" not in registry
    assert len(registry) == 0


def test_unregister_is_idempotent():
    registry = PresenceRegistry()
    registry.unregister("missing")
    registry.register("c1", "A")
    registry.unregister("c1")
    registry.unregister("c1")
    assert registry.snapshot() == []


def test_duplicate_names_are_keyed_by_connection_id():
    registry = PresenceRegistry()
    registry.register("c1", "Sam")
    registry.register("c2", "Sam")

    assert sorted(u.id for u in registry.snapshot()) == ["c1", "c2"]
    registry.unregister("c1")
    assert [u.id for u in registry.snapshot()] == ["c2"]


def test_connected_for_counts_seconds():
    registry = PresenceRegistry()
    user = registry.register("c1", "A")
    later = user.connected_at + timedelta(seconds=42)
    assert int(user.connected_for(later)) == 42
    assert user.connected_for(user.connected_at - timedelta(seconds=5)) == 0.0
    assert user.connected_for(datetime.now(timezone.utc)) >= 0.0


def test_generated_ids_and_guest_names_are_unique():
    assert new_connection_id() != new_connection_id()
    assert "-" in new_connection_id()

    first, second = generate_guest_name(), generate_guest_name()
    assert first.startswith("User_") and second.startswith("User_")
    assert first != second
