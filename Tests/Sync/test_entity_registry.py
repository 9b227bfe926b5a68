# test_entity_registry.py
#
# Imports
from unittest.mock import MagicMock
#
# Third-Party Imports
import pytest
from hypothesis import HealthCheck, given, settings, strategies as st
#
# Local Imports
from campaigner_tui.Constants import (
    ENTITY_CAMPAIGNS, ENTITY_CONVERSATIONS, SNAPSHOT_KEY_CAMPAIGNS, SNAPSHOT_KEY_CONVERSATIONS_PAGE,
    SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR,
)
from campaigner_tui.Sync.entity_registry import EntityRegistry
from campaigner_tui.Sync.pending_tracker import PendingOperationTracker
from campaigner_tui.Sync.snapshot_store import InMemorySnapshotStore
#
########################################################################################################################
#
# Functions:

settings.register_profile(
    "registry",
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
settings.load_profile("registry")


def assert_snapshot_mirrors(registry: EntityRegistry) -> None:
    for key in registry.snapshot_keys:
        assert registry.store.read(key) == registry.items

########################################################################################################################
#
# Tests

def test_reconcile_replaces_list_in_server_order(campaigns_registry):
    campaigns_registry.reconcile([{"id": 3}, {"id": 1}, {"id": 2}])
    assert campaigns_registry.ids == [3, 1, 2]
    assert campaigns_registry.is_hydrated


def test_reconcile_does_not_merge_fields(campaigns_registry):
    campaigns_registry.reconcile([{"id": 1, "title": "Old", "status": "draft"}])
    campaigns_registry.reconcile([{"id": 1, "title": "New"}])
    assert campaigns_registry.get(1) == {"id": 1, "title": "New"}


def test_reconcile_filters_pending_ids(campaigns_registry, tracker):
    tracker.mark(ENTITY_CAMPAIGNS, 2)
    campaigns_registry.reconcile([{"id": 1}, {"id": 2}, {"id": 3}])
    assert campaigns_registry.ids == [1, 3]


def test_pending_ids_of_other_type_are_ignored(campaigns_registry, tracker):
    tracker.mark(ENTITY_CONVERSATIONS, 2)
    campaigns_registry.reconcile([{"id": 1}, {"id": 2}])
    assert campaigns_registry.ids == [1, 2]


def test_reconcile_drops_duplicates_and_invalid_ids(campaigns_registry):
    campaigns_registry.reconcile([
        {"id": 1, "title": "first"},
        {"id": 1, "title": "duplicate"},
        {"title": "no id"},
        {"id": "7"},
        {"id": True},
        "not a dict",
        {"id": 2},
    ])
    assert campaigns_registry.items == [{"id": 1, "title": "first"}, {"id": 2}]


def test_optimistic_remove_and_restore(campaigns_registry):
    campaigns_registry.reconcile([{"id": 1}, {"id": 2, "title": "keep me"}, {"id": 3}])

    removed = campaigns_registry.optimistic_remove(2)
    assert removed == {"id": 2, "title": "keep me"}
    assert campaigns_registry.ids == [1, 3]
    assert campaigns_registry.optimistic_remove(2) is None

    campaigns_registry.optimistic_restore(removed)
    assert campaigns_registry.get(2) == {"id": 2, "title": "keep me"}
    campaigns_registry.optimistic_restore(removed)
    assert campaigns_registry.ids.count(2) == 1


def test_every_mutation_rewrites_all_snapshot_keys(conversations_registry):
    conversations_registry.reconcile([{"id": 1}, {"id": 2}])
    assert_snapshot_mirrors(conversations_registry)
    removed = conversations_registry.optimistic_remove(1)
    assert_snapshot_mirrors(conversations_registry)
    conversations_registry.optimistic_restore(removed)
    assert_snapshot_mirrors(conversations_registry)
    assert conversations_registry.snapshot_keys == (SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR,
                                                    SNAPSHOT_KEY_CONVERSATIONS_PAGE)


def test_hydrate_loads_snapshot(store, tracker):
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 4}, {"id": 5}])
    registry = EntityRegistry(ENTITY_CAMPAIGNS, store, tracker, [SNAPSHOT_KEY_CAMPAIGNS])
    assert registry.hydrate() is True
    assert registry.ids == [4, 5]
    assert registry.is_hydrated


def test_hydrate_cold_start(campaigns_registry, store):
    assert campaigns_registry.hydrate() is False
    store.write(SNAPSHOT_KEY_CAMPAIGNS, {"not": "a list"})
    assert campaigns_registry.hydrate() is False
    assert not campaigns_registry.is_hydrated
    assert campaigns_registry.items == []


def test_hydrate_skips_pending_ids(store, tracker):
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 4}, {"id": 5}])
    tracker.mark(ENTITY_CAMPAIGNS, 5)
    registry = EntityRegistry(ENTITY_CAMPAIGNS, store, tracker, [SNAPSHOT_KEY_CAMPAIGNS])
    registry.hydrate()
    assert registry.ids == [4]


def test_clear_empties_memory_and_snapshot(conversations_registry, store):
    conversations_registry.reconcile([{"id": 1}])
    conversations_registry.clear()
    assert conversations_registry.items == []
    assert not conversations_registry.is_hydrated
    assert store.read(SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR) is None
    assert store.read(SNAPSHOT_KEY_CONVERSATIONS_PAGE) is None


def test_unhydrated_registry_edits_snapshot_directly(store, tracker):
    store.write(SNAPSHOT_KEY_CAMPAIGNS, [{"id": 4}, {"id": 5}])
    registry = EntityRegistry(ENTITY_CAMPAIGNS, store, tracker, [SNAPSHOT_KEY_CAMPAIGNS])

    assert registry.lookup(lambda item: item["id"] == 5) == {"id": 5}
    removed = registry.optimistic_remove(5)
    assert removed == {"id": 5}
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 4}]

    registry.optimistic_restore(removed)
    assert store.read(SNAPSHOT_KEY_CAMPAIGNS) == [{"id": 4}, {"id": 5}]
    assert registry.items == []


def test_find_tolerates_predicate_errors(campaigns_registry):
    campaigns_registry.reconcile([{"id": 1}, {"id": 2, "conversation_id": 7}])
    match = campaigns_registry.find(lambda item: item["conversation_id"] == 7)
    assert match["id"] == 2


def test_listeners_are_notified_and_isolated(campaigns_registry):
    broken = MagicMock(side_effect=RuntimeError("render failed"))
    healthy = MagicMock()
    campaigns_registry.add_listener(broken)
    remove = campaigns_registry.add_listener(healthy)

    campaigns_registry.reconcile([{"id": 1}])
    healthy.assert_called_once_with(campaigns_registry)

    remove()
    campaigns_registry.reconcile([{"id": 2}])
    healthy.assert_called_once()


def test_registry_requires_a_snapshot_key(store, tracker):
    with pytest.raises(ValueError):
        EntityRegistry(ENTITY_CAMPAIGNS, store, tracker, [])


# --- Properties ---

st_ids = st.lists(st.integers(min_value=1, max_value=30), max_size=25)


@given(server_ids=st_ids, pending=st.sets(st.integers(min_value=1, max_value=30), max_size=10))
def test_reconcile_never_resurrects_pending_ids(server_ids, pending):
    tracker = PendingOperationTracker()
    registry = EntityRegistry(ENTITY_CAMPAIGNS, InMemorySnapshotStore(ttl_seconds=0), tracker,
                              [SNAPSHOT_KEY_CAMPAIGNS])
    for entity_id in pending:
        tracker.mark(ENTITY_CAMPAIGNS, entity_id)

    result = registry.reconcile([{"id": entity_id} for entity_id in server_ids])

    assert not set(registry.ids) & pending
    assert [item["id"] for item in result] == registry.ids
    assert len(registry.ids) == len(set(registry.ids))
    assert set(registry.ids) == set(server_ids) - pending


@given(operations=st.lists(
    st.tuples(st.sampled_from(["reconcile", "remove", "restore"]), st_ids),
    max_size=15,
))
def test_snapshot_mirrors_memory_after_any_mutation(operations):
    registry = EntityRegistry(ENTITY_CONVERSATIONS, InMemorySnapshotStore(ttl_seconds=0),
                              PendingOperationTracker(),
                              [SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR, SNAPSHOT_KEY_CONVERSATIONS_PAGE])
    registry.reconcile([])
    for operation, ids in operations:
        if operation == "reconcile":
            registry.reconcile([{"id": entity_id, "title": f"c{entity_id}"} for entity_id in ids])
        elif operation == "remove":
            for entity_id in ids[:3]:
                registry.optimistic_remove(entity_id)
        else:
            for entity_id in ids[:3]:
                registry.optimistic_restore({"id": entity_id})
        assert_snapshot_mirrors(registry)

#
# End of test_entity_registry.py
########################################################################################################################
