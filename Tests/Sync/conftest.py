# conftest.py
# Description: Shared fixtures for the sync engine tests
#
# Imports
#
# Third-Party Imports
import pytest
#
# Local Imports
from campaigner_tui.Constants import (
    ENTITY_CAMPAIGNS, ENTITY_CONVERSATIONS, SNAPSHOT_KEY_CAMPAIGNS, SNAPSHOT_KEY_CONVERSATIONS_PAGE,
    SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR,
)
from campaigner_tui.Sync.entity_registry import EntityRegistry
from campaigner_tui.Sync.invalidation_bus import InvalidationBus
from campaigner_tui.Sync.pending_tracker import PendingOperationTracker
from campaigner_tui.Sync.snapshot_store import InMemorySnapshotStore
from sync_fakes import FakeCampaignerAPI
#
########################################################################################################################
#
# Fixtures and Helpers

@pytest.fixture
def store():
    return InMemorySnapshotStore(ttl_seconds=0)


@pytest.fixture
def tracker():
    return PendingOperationTracker()


@pytest.fixture
def bus():
    return InvalidationBus()


@pytest.fixture
def conversations_registry(store, tracker):
    return EntityRegistry(ENTITY_CONVERSATIONS, store, tracker,
                          [SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR, SNAPSHOT_KEY_CONVERSATIONS_PAGE])


@pytest.fixture
def campaigns_registry(store, tracker):
    return EntityRegistry(ENTITY_CAMPAIGNS, store, tracker, [SNAPSHOT_KEY_CAMPAIGNS])


@pytest.fixture
def fake_api():
    return FakeCampaignerAPI(
        conversations=[
            {"id": 1, "title": "Spring launch"},
            {"id": 7, "title": "Webinar follow-up", "has_campaign": True},
            {"id": 9, "title": "Cold outreach"},
        ],
        campaigns=[
            {"id": 30, "title": "Webinar drip", "conversation_id": 7, "status": "active"},
            {"id": 31, "title": "Standalone", "status": "draft"},
        ],
    )

#
# End of conftest.py
########################################################################################################################
