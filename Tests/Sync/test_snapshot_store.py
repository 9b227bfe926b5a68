# test_snapshot_store.py
#
# Imports
import json
#
# Third-Party Imports
import pytest
#
# Local Imports
from campaigner_tui.Constants import ALL_SNAPSHOT_KEYS, SNAPSHOT_KEY_CAMPAIGNS, SNAPSHOT_KEY_CREDITS
from campaigner_tui.Sync.snapshot_store import InMemorySnapshotStore, JsonFileSnapshotStore, SQLiteSnapshotStore
#
########################################################################################################################
#
# Fixtures and Helpers

class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture(params=["memory", "json", "sqlite"])
def any_store(request, tmp_path):
    if request.param == "memory":
        store = InMemorySnapshotStore(ttl_seconds=0)
    elif request.param == "json":
        store = JsonFileSnapshotStore(tmp_path / "snapshots", ttl_seconds=0)
    else:
        store = SQLiteSnapshotStore(tmp_path / "snapshots.db", ttl_seconds=0)
    yield store
    if hasattr(store, "close"):
        store.close()

########################################################################################################################
#
# Tests

def test_read_missing_key_is_absent(any_store):
    assert any_store.read(SNAPSHOT_KEY_CAMPAIGNS) is None


def test_write_then_read_returns_value(any_store):
    campaigns = [{"id": 1, "title": "A"}, {"id": 2, "title": "B"}]
    any_store.write(SNAPSHOT_KEY_CAMPAIGNS, campaigns)
    assert any_store.read(SNAPSHOT_KEY_CAMPAIGNS) == campaigns


def test_clear_removes_only_that_key(any_store):
    any_store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 1}])
    any_store.write(SNAPSHOT_KEY_CREDITS, {"credits_remaining": 3})
    any_store.clear(SNAPSHOT_KEY_CAMPAIGNS)
    assert any_store.read(SNAPSHOT_KEY_CAMPAIGNS) is None
    assert any_store.read(SNAPSHOT_KEY_CREDITS) == {"credits_remaining": 3}


def test_clear_all_defaults_to_every_tracked_key(any_store):
    for key in ALL_SNAPSHOT_KEYS:
        any_store.write(key, [{"id": 1}])
    any_store.clear_all()
    assert all(any_store.read(key) is None for key in ALL_SNAPSHOT_KEYS)


def test_unserialisable_value_is_swallowed():
    store = InMemorySnapshotStore(ttl_seconds=0)
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 1}])
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": object()}])  # must not raise
    # The previous good value is kept.
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 1}]


@pytest.mark.parametrize("raw", ["{not json", json.dumps([1, 2, 3]), json.dumps({"no_data": True})])
def test_corrupt_entry_reads_as_absent_and_is_removed(raw):
    store = InMemorySnapshotStore(ttl_seconds=0)
    store._set_raw(SNAPSHOT_KEY_CAMPAIGNS, raw)
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) is None
    assert store._get_raw(SNAPSHOT_KEY_CAMPAIGNS) is None


def test_envelope_layout():
    clock = FakeClock(1000.0)
    store = InMemorySnapshotStore(ttl_seconds=300, clock=clock, user_id_provider=lambda: 42)
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 5}])
    envelope = json.loads(store._get_raw(SNAPSHOT_KEY_CAMPAIGNS))
    assert envelope == {"data": [{"id": 5}], "timestamp": 1_000_000, "user_id": 42}


def test_expired_entry_reads_as_absent():
    clock = FakeClock()
    store = InMemorySnapshotStore(ttl_seconds=300, clock=clock)
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 1}])

    clock.now += 299
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 1}]

    clock.now += 2
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) is None
    assert store._get_raw(SNAPSHOT_KEY_CAMPAIGNS) is None


def test_zero_ttl_never_expires():
    clock = FakeClock()
    store = InMemorySnapshotStore(ttl_seconds=0, clock=clock)
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 1}])
    clock.now += 10 * 365 * 24 * 3600
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 1}]


def test_entry_for_another_user_is_discarded():
    current_user = {"id": 1}
    store = InMemorySnapshotStore(ttl_seconds=0, user_id_provider=lambda: current_user["id"])
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 10}])

    current_user["id"] = 2
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) is None
    # Gone for good, even if the first user comes back.
    current_user["id"] = 1
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) is None


def test_owner_check_skipped_when_user_unknown():
    current_user = {"id": 1}
    store = InMemorySnapshotStore(ttl_seconds=0, user_id_provider=lambda: current_user["id"])
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 10}])
    current_user["id"] = None
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 10}]


def test_failing_user_id_provider_does_not_break_reads():
    def broken_provider():
        raise RuntimeError("token store unavailable")

    store = InMemorySnapshotStore(ttl_seconds=0, user_id_provider=broken_provider)
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 10}])
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 10}]


def test_backend_read_failure_reads_as_absent(mocker):
    store = InMemorySnapshotStore(ttl_seconds=0)
    mocker.patch.object(store, "_get_raw", side_effect=OSError("disk gone"))
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) is None


def test_backend_write_failure_is_swallowed(mocker):
    store = InMemorySnapshotStore(ttl_seconds=0)
    mocker.patch.object(store, "_set_raw", side_effect=OSError("quota exceeded"))
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 1}])
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) is None


def test_json_store_survives_a_new_instance(tmp_path):
    JsonFileSnapshotStore(tmp_path, ttl_seconds=0).write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 3}])
    assert JsonFileSnapshotStore(tmp_path, ttl_seconds=0).read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 3}]
    assert (tmp_path / f"{SNAPSHOT_KEY_CAMPAIGNS}.json").exists()


def test_sqlite_store_survives_a_new_instance(tmp_path):
    db_path = tmp_path / "nested" / "snapshots.db"
    first = SQLiteSnapshotStore(db_path, ttl_seconds=0)
    first.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 3}])
    first.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 4}])
    first.close()

    second = SQLiteSnapshotStore(db_path, ttl_seconds=0)
    assert second.read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 4}]
    second.close()

#
# End of test_snapshot_store.py
########################################################################################################################
